from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from meme_trader.core.config import TraderConfig
from meme_trader.core.types import OscillatorParams, OscillatorSample, Signal
from meme_trader.indicators.base import Oscillator
from meme_trader.indicators.factory import build_oscillator
from meme_trader.indicators.implementations.macd import macd


def is_non_decreasing(values: Sequence[float], window: int) -> bool:
    """True when the last `window` values exist and no adjacent pair goes down."""
    if window < 1 or len(values) < window:
        return False
    tail = values[-window:]
    return all(nxt >= cur for cur, nxt in zip(tail, tail[1:]))


def is_non_increasing(values: Sequence[float], window: int) -> bool:
    if window < 1 or len(values) < window:
        return False
    tail = values[-window:]
    return all(nxt <= cur for cur, nxt in zip(tail, tail[1:]))


@dataclass(frozen=True)
class SignalDetector:
    """
    Momentum reversal detector over the oscillator histogram.

    BUY needs the last `up_confirmations + 1` histogram values to be non-decreasing,
    SELL needs the last `down_confirmations + 1` to be non-increasing. BUY is checked
    first and wins when both hold.
    """

    params: OscillatorParams = field(default_factory=OscillatorParams)
    up_confirmations: int = 2
    down_confirmations: int = 2
    oscillator: Oscillator = macd

    @classmethod
    def from_config(cls, cfg: TraderConfig) -> "SignalDetector":
        return cls(
            params=OscillatorParams(
                fast_period=cfg.fast_period,
                slow_period=cfg.slow_period,
                signal_period=cfg.signal_period,
            ),
            up_confirmations=cfg.up_confirmations,
            down_confirmations=cfg.down_confirmations,
            oscillator=build_oscillator(cfg.oscillator),
        )

    def compute(self, closes: Sequence[float]) -> list[OscillatorSample]:
        return self.oscillator(closes, self.params)

    def decide(self, samples: Sequence[OscillatorSample]) -> Signal:
        # insufficient warm-up
        if len(samples) < self.params.slow_period:
            return Signal.NONE
        hist = [s.histogram for s in samples]
        if is_non_decreasing(hist, self.up_confirmations + 1):
            return Signal.BUY
        if is_non_increasing(hist, self.down_confirmations + 1):
            return Signal.SELL
        return Signal.NONE

    def detect(self, closes: Sequence[float]) -> Signal:
        return self.decide(self.compute(closes))
