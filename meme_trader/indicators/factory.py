from __future__ import annotations

from meme_trader.indicators.base import Oscillator
from meme_trader.indicators.implementations.macd import macd

OSCILLATORS: dict[str, Oscillator] = {
    "macd": macd,
}


def build_oscillator(name: str) -> Oscillator:
    try:
        return OSCILLATORS[name.lower()]
    except KeyError:
        raise ValueError(f"Unknown oscillator: {name}") from None
