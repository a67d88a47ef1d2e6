from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


class LoggingConfig(BaseModel):
    level: str = "INFO"
    file: str | None = None  # rotating log file, disabled when unset
    file_level: str = "DEBUG"


class ExchangeConfig(BaseModel):
    base_url: str = "https://api.kucoin.com"
    market: str = "USDS"
    key_version: int = 2
    timeout_sec: float = 10.0
    max_per_sec: int = 8
    history_calls: int = Field(default=2, ge=1)  # max outstanding candle requests


class UniverseConfig(BaseModel):
    quote_currency: str = "USDT"
    deny: list[str] = Field(default_factory=list)
    allow: list[str] = Field(default_factory=list)  # if set, restricts the universe
    force: list[str] = Field(default_factory=list)  # always qualify for an agent
    max_age_min: int = Field(default=60, ge=1)
    min_volume: float = 0.0  # millions of quote currency
    max_volume: float = 0.0  # 0 means unbounded
    min_price: float = 0.0
    min_change: float = 0.1  # 24h change rate, 0.1 == +10%

    @property
    def max_age_sec(self) -> float:
        return float(self.max_age_min) * 60.0


class TraderConfig(BaseModel):
    timeframe: str = "1hour"
    oscillator: str = "macd"
    fast_period: int = Field(default=12, ge=1)
    slow_period: int = Field(default=26, ge=1)
    signal_period: int = Field(default=9, ge=1)
    up_confirmations: int = Field(default=2, ge=1)
    down_confirmations: int = Field(default=2, ge=1)
    funds: float = Field(default=10.0, gt=0)  # quote amount spent per BUY
    history_bars: int = Field(default=100, ge=1)


class EngineConfig(BaseModel):
    tick_interval_sec: float = Field(default=60.0, gt=0)
    drain: bool = False
    pause: bool = False


class ControlConfig(BaseModel):
    enabled: bool = False
    host: str = "127.0.0.1"
    port: int = 8080
    token: str | None = None


class TelegramConfig(BaseModel):
    bot_token: str | None = None
    chat_id: str | None = None
    level: str = "WARNING"  # log records at or above are forwarded as alerts


class AppConfig(BaseModel):
    mode: str = "paper"
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    exchange: ExchangeConfig = Field(default_factory=ExchangeConfig)
    universe: UniverseConfig = Field(default_factory=UniverseConfig)
    trader: TraderConfig = Field(default_factory=TraderConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    control: ControlConfig = Field(default_factory=ControlConfig)
    telegram: TelegramConfig = Field(default_factory=TelegramConfig)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    out = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def load_config(path: str) -> AppConfig:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(path)
    data = yaml.safe_load(p.read_text()) or {}

    # deployment specific values (credentials aside) live in a sibling local.yaml
    local = p.parent / "local.yaml"
    if local.exists() and local.resolve() != p.resolve():
        data = _deep_merge(data, yaml.safe_load(local.read_text()) or {})

    return AppConfig.model_validate(data)
