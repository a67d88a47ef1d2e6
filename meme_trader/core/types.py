from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Side(str, Enum):
    BUY = "buy"
    SELL = "sell"


class Signal(str, Enum):
    NONE = "NONE"
    BUY = "BUY"
    SELL = "SELL"


class AgentState(str, Enum):
    IDLE = "IDLE"
    BUYING = "BUYING"
    POSITION = "POSITION"
    SELLING = "SELLING"


@dataclass(frozen=True)
class Candle:
    time: int  # period start, epoch seconds
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0


@dataclass(frozen=True)
class OscillatorParams:
    fast_period: int = 12
    slow_period: int = 26
    signal_period: int = 9


@dataclass(frozen=True)
class OscillatorSample:
    main: float
    signal: float
    histogram: float


@dataclass(frozen=True)
class SymbolDescriptor:
    symbol: str
    base_currency: str
    quote_currency: str
    trading_enabled: bool


@dataclass(frozen=True)
class UniverseEntry:
    """24h statistics of one symbol, as last fetched from the exchange."""

    symbol: str
    last_price: float
    volume_quote: float
    change_rate_24h: float
    captured_at: float  # epoch seconds

    def age(self, now: float) -> float:
        return now - self.captured_at

    def is_stale(self, now: float, max_age_sec: float) -> bool:
        return self.age(now) > max_age_sec


@dataclass(frozen=True)
class ExchangeOrder:
    order_id: str
    symbol: str
    side: Side
    is_active: bool
    deal_size: float
    created_at: int  # epoch milliseconds
    client_oid: str | None = None
    deal_funds: float = 0.0
