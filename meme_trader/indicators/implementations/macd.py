from __future__ import annotations

from typing import Sequence

from meme_trader.core.types import OscillatorParams, OscillatorSample


def _ema_series(values: Sequence[float], period: int) -> list[float]:
    """EMA seeded with the SMA of the first `period` values; first output is the seed."""
    if len(values) < period:
        return []
    k = 2.0 / (period + 1.0)
    ema = sum(values[:period]) / float(period)
    out = [ema]
    for v in values[period:]:
        ema = (v - ema) * k + ema
        out.append(ema)
    return out


def macd(closes: Sequence[float], params: OscillatorParams) -> list[OscillatorSample]:
    """
    MACD over a close series.

    One sample per close starting at the first close where both the MACD line and
    its signal line exist, i.e. len(closes) - slow - signal + 2 samples.
    """
    ema_fast = _ema_series(closes, params.fast_period)
    ema_slow = _ema_series(closes, params.slow_period)
    if not ema_fast or not ema_slow:
        return []
    # align by last values
    n = min(len(ema_fast), len(ema_slow))
    line = [ema_fast[-n + i] - ema_slow[-n + i] for i in range(n)]
    sig = _ema_series(line, params.signal_period)
    if not sig:
        return []
    line = line[-len(sig) :]
    return [OscillatorSample(main=m, signal=s, histogram=m - s) for m, s in zip(line, sig)]
