from __future__ import annotations

import logging
import math

from meme_trader.core.config import UniverseConfig
from meme_trader.core.types import UniverseEntry
from meme_trader.exchange.base import ExchangeClient
from meme_trader.universe.filters import filter_trading_symbols, select_candidates
from meme_trader.universe.registry import StatsCache


def slice_size(universe_size: int, max_age_min: int) -> int:
    """Symbols refreshed per tick so each one is revisited twice within max_age."""
    return math.ceil(universe_size / max_age_min) * 2


class UniverseScanner:
    def __init__(self, cfg: UniverseConfig, exchange: ExchangeClient, *, market: str = "USDS") -> None:
        self._cfg = cfg
        self._exchange = exchange
        self._market = market
        self._log = logging.getLogger("universe")
        self.stats = StatsCache(max_age_sec=cfg.max_age_sec)
        self.universe_complete = False
        self.universe_size = 0

    async def refresh(self, now: float) -> set[UniverseEntry]:
        """
        Refresh statistics of at most slice_size() stale symbols. Returns the entries
        fetched this tick. A symbol list failure aborts the tick; a single symbol
        failure is skipped and retried next tick.
        """
        try:
            symbols = await self._exchange.list_symbols(self._market)
        except Exception as e:
            self._log.error("refresh: symbol list unavailable: %s", e)
            return set()

        tradable = filter_trading_symbols(
            symbols,
            quote_currency=self._cfg.quote_currency,
            deny={s.upper() for s in self._cfg.deny},
            allow={s.upper() for s in self._cfg.allow} or None,
        )
        self.universe_size = len(tradable)
        dropped = self.stats.retain({d.symbol for d in tradable})
        if dropped:
            self._log.info("refresh: dropped %d symbols no longer tradable: %s", len(dropped), dropped)
        pending = sorted(d.symbol for d in tradable if not self.stats.is_fresh(d.symbol, now))
        if not self.universe_complete and not pending:
            self.universe_complete = True
            self._log.info("Universe complete: %d symbols", len(self.stats))
        self._log.debug("refresh: %d/%d symbols need stats", len(pending), self.universe_size)

        refreshed: set[UniverseEntry] = set()
        for symbol in pending[: slice_size(self.universe_size, self._cfg.max_age_min)]:
            try:
                entry = await self._exchange.get_24h_stats(symbol)
            except Exception as e:
                self._log.warning("refresh: stats for %s failed: %s", symbol, e)
                continue
            self.stats.put(entry)
            refreshed.add(entry)
        return refreshed

    def candidates(self) -> list[UniverseEntry]:
        return select_candidates(self.stats.values(), self._cfg)
