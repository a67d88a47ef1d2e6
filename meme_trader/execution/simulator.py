from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable

from meme_trader.core.errors import ExchangeError
from meme_trader.core.types import Candle, ExchangeOrder, Side, SymbolDescriptor, UniverseEntry
from meme_trader.exchange.base import ExchangeClient
from meme_trader.execution.slippage import fill_price


@dataclass
class PaperExchange(ExchangeClient):
    """
    Paper trading: market data comes from `market`, market orders fill in memory
    at the last known price (plus slippage) the moment they are placed.
    """

    market: ExchangeClient
    slippage_bps: float = 0.0
    initial_quote: float = 1000.0
    clock: Callable[[], float] = time.time

    _order_seq: int = 0
    _orders: list[ExchangeOrder] = field(default_factory=list)
    _last_price: dict[str, float] = field(default_factory=dict)
    _holdings: dict[str, float] = field(default_factory=dict)
    _log: logging.Logger = field(default_factory=lambda: logging.getLogger("paper"))

    def __post_init__(self) -> None:
        self.quote_balance = float(self.initial_quote)

    async def ping(self) -> int:
        return await self.market.ping()

    async def list_symbols(self, market: str) -> list[SymbolDescriptor]:
        return await self.market.list_symbols(market)

    async def get_24h_stats(self, symbol: str) -> UniverseEntry:
        entry = await self.market.get_24h_stats(symbol)
        self._last_price[symbol] = entry.last_price
        return entry

    async def get_candles(self, symbol: str, timeframe: str, start_at: int) -> list[Candle]:
        candles = await self.market.get_candles(symbol, timeframe, start_at)
        if candles:
            self._last_price[symbol] = candles[-1].close
        return candles

    async def place_market_order(
        self,
        client_id: str,
        side: Side,
        symbol: str,
        *,
        funds: float | None = None,
        size: float | None = None,
    ) -> str:
        if (funds is None) == (size is None):
            raise ValueError("exactly one of funds or size is required")
        last_price = self._last_price.get(symbol)
        if last_price is None:
            last_price = (await self.market.get_24h_stats(symbol)).last_price
            self._last_price[symbol] = last_price
        if last_price <= 0:
            raise ExchangeError("400100", f"no price for {symbol}")
        price = fill_price(last_price, side, slippage_bps=self.slippage_bps)

        held = self._holdings.get(symbol, 0.0)
        if side == Side.BUY:
            spend = float(funds) if funds is not None else float(size) * price  # type: ignore[arg-type]
            if spend > self.quote_balance:
                raise ExchangeError("200004", "Balance insufficient!")
            qty = spend / price
            self.quote_balance -= spend
            self._holdings[symbol] = held + qty
        else:
            qty = float(size) if size is not None else float(funds) / price  # type: ignore[arg-type]
            if qty > held + 1e-12:
                raise ExchangeError("200004", "Balance insufficient!")
            self.quote_balance += qty * price
            self._holdings[symbol] = max(0.0, held - qty)

        self._order_seq += 1
        oid = f"paper-{self._order_seq}"
        self._orders.append(
            ExchangeOrder(
                order_id=oid,
                symbol=symbol,
                side=side,
                is_active=False,
                deal_size=qty,
                created_at=int(self.clock() * 1000),
                client_oid=client_id,
                deal_funds=qty * price,
            )
        )
        self._log.info("Paper fill: %s %s qty=%s price=%s", side.value, symbol, qty, price)
        return oid

    async def list_orders(self) -> list[ExchangeOrder]:
        # appended in placement order
        return list(reversed(self._orders))

    def holdings(self) -> dict[str, float]:
        return {s: q for s, q in self._holdings.items() if q > 0}

    async def close(self) -> None:
        await self.market.close()
