from __future__ import annotations

from meme_trader.core.config import UniverseConfig
from meme_trader.core.types import SymbolDescriptor, UniverseEntry


def filter_trading_symbols(
    symbols: list[SymbolDescriptor],
    *,
    quote_currency: str,
    deny: set[str],
    allow: set[str] | None = None,
) -> list[SymbolDescriptor]:
    out: list[SymbolDescriptor] = []
    for d in symbols:
        if not d.trading_enabled:
            continue
        if d.quote_currency != quote_currency:
            continue
        if d.symbol in deny:
            continue
        if allow and d.symbol not in allow:
            continue
        out.append(d)
    return out


def passes_thresholds(entry: UniverseEntry, cfg: UniverseConfig) -> bool:
    """
    Volume, price and 24h change gates. Volumes are configured in millions of
    quote currency; a zero max_volume means no upper bound.
    """
    min_volume = cfg.min_volume * 1_000_000
    max_volume = cfg.max_volume * 1_000_000 if cfg.max_volume > 0 else float("inf")
    if not (min_volume <= entry.volume_quote <= max_volume):
        return False
    if entry.last_price < cfg.min_price:
        return False
    # only symbols that went up by some % in the last 24 hours
    return entry.change_rate_24h >= cfg.min_change


def select_candidates(entries: list[UniverseEntry], cfg: UniverseConfig) -> list[UniverseEntry]:
    forced = {s.upper() for s in cfg.force}
    out = [e for e in entries if e.symbol in forced or passes_thresholds(e, cfg)]
    out.sort(key=lambda e: e.symbol)
    return out
