from __future__ import annotations

from abc import ABC, abstractmethod

from meme_trader.core.types import Candle, ExchangeOrder, Side, SymbolDescriptor, UniverseEntry


class ExchangeClient(ABC):
    """Abstract spot exchange client. Non-success answers raise ExchangeError."""

    @abstractmethod
    async def ping(self) -> int:
        """Return server time (ms). Used at boot to fail fast on an unreachable exchange."""
        raise NotImplementedError

    @abstractmethod
    async def list_symbols(self, market: str) -> list[SymbolDescriptor]:
        raise NotImplementedError

    @abstractmethod
    async def get_24h_stats(self, symbol: str) -> UniverseEntry:
        raise NotImplementedError

    @abstractmethod
    async def get_candles(self, symbol: str, timeframe: str, start_at: int) -> list[Candle]:
        """Candles since `start_at` (epoch seconds), ascending by time."""
        raise NotImplementedError

    @abstractmethod
    async def place_market_order(
        self,
        client_id: str,
        side: Side,
        symbol: str,
        *,
        funds: float | None = None,
        size: float | None = None,
    ) -> str:
        """Place a market order sized by quote `funds` or base `size`. Returns the order id."""
        raise NotImplementedError

    @abstractmethod
    async def list_orders(self) -> list[ExchangeOrder]:
        """Recent orders, most recent first."""
        raise NotImplementedError

    @abstractmethod
    async def close(self) -> None:
        raise NotImplementedError
