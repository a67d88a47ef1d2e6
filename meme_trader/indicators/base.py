from __future__ import annotations

from typing import Callable, Sequence

from meme_trader.core.types import OscillatorParams, OscillatorSample

# Pure function: close series -> one sample per close once warmed up.
Oscillator = Callable[[Sequence[float], OscillatorParams], list[OscillatorSample]]
