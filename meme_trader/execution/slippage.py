from __future__ import annotations

from meme_trader.core.types import Side


def fill_price(last_price: float, side: Side, *, slippage_bps: float = 0.0) -> float:
    """Paper fill price: a BUY pays `slippage_bps` above the last price, a SELL receives that much below."""
    adj = float(slippage_bps) / 10_000.0
    sign = 1.0 if side == Side.BUY else -1.0
    return float(last_price) * (1.0 + sign * adj)
