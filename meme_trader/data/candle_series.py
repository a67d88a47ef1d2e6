from __future__ import annotations

from bisect import insort
from typing import Iterable, Iterator

from meme_trader.core.types import Candle


class CandleSeries:
    """
    Append-only candle buffer of one symbol, sorted by time, one candle per timestamp.

    A candle already present is never replaced: once a timestamp is in the buffer
    later versions of that bar are ignored.
    """

    def __init__(self, symbol: str, timeframe_sec: int) -> None:
        self.symbol = symbol
        self.timeframe_sec = timeframe_sec
        self._candles: list[Candle] = []
        self._times: set[int] = set()

    def merge(self, candles: Iterable[Candle]) -> int:
        added = 0
        for c in candles:
            if c.time in self._times:
                continue
            self._times.add(c.time)
            if not self._candles or c.time > self._candles[-1].time:
                self._candles.append(c)
            else:
                # late bar filling a hole
                insort(self._candles, c, key=lambda x: x.time)
            added += 1
        return added

    @property
    def last_time(self) -> int | None:
        return self._candles[-1].time if self._candles else None

    def closes(self) -> list[float]:
        return [c.close for c in self._candles]

    def tail(self, n: int) -> list[Candle]:
        return list(self._candles[-n:]) if n > 0 else []

    def __len__(self) -> int:
        return len(self._candles)

    def __iter__(self) -> Iterator[Candle]:
        return iter(list(self._candles))

    def __contains__(self, time: object) -> bool:
        return time in self._times
