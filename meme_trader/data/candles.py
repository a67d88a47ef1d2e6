from __future__ import annotations

from typing import Any

from meme_trader.core.types import Candle

TIMEFRAME_TO_SECONDS: dict[str, int] = {
    "1min": 60,
    "3min": 180,
    "5min": 300,
    "15min": 900,
    "30min": 1800,
    "1hour": 3600,
    "2hour": 7200,
    "4hour": 14400,
    "6hour": 21600,
    "8hour": 28800,
    "12hour": 43200,
    "1day": 86400,
    "1week": 604800,
}


def timeframe_seconds(timeframe: str) -> int:
    try:
        return TIMEFRAME_TO_SECONDS[timeframe]
    except KeyError:
        raise ValueError(f"Unknown timeframe: {timeframe}") from None


def klines_to_candles(klines: list[list[Any]]) -> list[Candle]:
    """
    KuCoin kline format, newest first:
      [
        [
          "1545904980",   // Start time of the candle cycle (seconds)
          "0.058",        // Open
          "0.049",        // Close
          "0.058",        // High
          "0.049",        // Low
          "0.018",        // Volume
          "0.000945",     // Turnover
        ]
      ]
    Returned candles are ascending by time.
    """
    out: list[Candle] = []
    for k in klines:
        out.append(
            Candle(
                time=int(k[0]),
                open=float(k[1]),
                close=float(k[2]),
                high=float(k[3]),
                low=float(k[4]),
                volume=float(k[5]) if len(k) > 5 else 0.0,
            )
        )
    out.sort(key=lambda c: c.time)
    return out


def final_candles(candles: list[Candle], *, timeframe_sec: int, now: float) -> list[Candle]:
    """Drop the candle of the still open period; its values are provisional."""
    return [c for c in candles if c.time + timeframe_sec <= now]
