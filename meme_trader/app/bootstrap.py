from __future__ import annotations

import os

from meme_trader.app.control_server import build_server
from meme_trader.core.config import AppConfig
from meme_trader.core.env import env_flag
from meme_trader.engine.orchestrator import Orchestrator
from meme_trader.engine.runtime import Runtime
from meme_trader.exchange.adapters.auth import ApiKeys, load_keys_from_env
from meme_trader.exchange.base import ExchangeClient
from meme_trader.exchange.kucoin.spot_client import KucoinSpotClient
from meme_trader.execution.simulator import PaperExchange
from meme_trader.monitoring.alerts.telegram import NullAlerter, TelegramAlerter, TelegramSettings
from meme_trader.monitoring.logger import install_alert_handler


def build_exchange(cfg: AppConfig, mode: str) -> ExchangeClient:
    if mode == "live":
        if not env_flag("LIVE_ENABLED"):
            raise RuntimeError("Live is disabled. Set LIVE_ENABLED=true in .env to trade real funds.")
        return KucoinSpotClient(cfg.exchange, keys=load_keys_from_env())
    # paper: public market data only, orders filled in memory
    keys: ApiKeys | None = None
    return PaperExchange(market=KucoinSpotClient(cfg.exchange, keys=keys))


def build_alerter(cfg: AppConfig):
    token = cfg.telegram.bot_token or os.environ.get("TELEGRAM_API_KEY", "").strip()
    if token and cfg.telegram.chat_id:
        return TelegramAlerter(TelegramSettings(bot_token=token, chat_id=cfg.telegram.chat_id))
    return NullAlerter()


def build_runtime(cfg: AppConfig, mode: str) -> Runtime:
    exchange = build_exchange(cfg, mode)
    alerter = build_alerter(cfg)
    orchestrator = Orchestrator(cfg, exchange, alerter=alerter)
    server = build_server(orchestrator, cfg.control) if cfg.control.enabled else None
    handler = install_alert_handler(alerter, cfg.telegram.level) if isinstance(alerter, TelegramAlerter) else None
    return Runtime(orchestrator, exchange, control_server=server, alerter=alerter, alert_handler=handler)
