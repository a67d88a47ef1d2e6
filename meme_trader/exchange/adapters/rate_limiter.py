from __future__ import annotations

import asyncio
import contextlib
import time
from collections import deque
from typing import AsyncIterator, Callable

from meme_trader.core.errors import BudgetExhausted


class SimpleRateLimiter:
    """
    Sliding one-second window over request start times.

    KuCoin meters requests per resource pool; this only keeps a burst of
    agent checks from tripping the public limit.
    """

    def __init__(self, max_per_sec: int = 8, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._max_per_sec = max(1, max_per_sec)
        self._clock = clock
        self._lock = asyncio.Lock()
        self._starts: deque[float] = deque()

    async def acquire(self) -> None:
        async with self._lock:
            while True:
                now = self._clock()
                while self._starts and now - self._starts[0] >= 1.0:
                    self._starts.popleft()
                if len(self._starts) < self._max_per_sec:
                    self._starts.append(now)
                    return
                await asyncio.sleep(1.0 - (now - self._starts[0]))


class CallBudget:
    """
    Fixed number of calls allowed in flight. A caller that finds no free slot
    gets BudgetExhausted immediately instead of queueing.
    """

    def __init__(self, slots: int) -> None:
        self._slots = slots
        self._in_flight = 0

    @property
    def available(self) -> int:
        return self._slots - self._in_flight

    @contextlib.asynccontextmanager
    async def slot(self, what: str) -> AsyncIterator[None]:
        if self._in_flight >= self._slots:
            raise BudgetExhausted(what)
        self._in_flight += 1
        try:
            yield
        finally:
            self._in_flight -= 1
