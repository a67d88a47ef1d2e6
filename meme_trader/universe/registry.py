from __future__ import annotations

from dataclasses import dataclass, field

from meme_trader.core.types import UniverseEntry


@dataclass
class StatsCache:
    """Latest UniverseEntry per symbol; mutated only by the scanner."""

    max_age_sec: float
    entries: dict[str, UniverseEntry] = field(default_factory=dict)

    def put(self, entry: UniverseEntry) -> None:
        self.entries[entry.symbol] = entry

    def get(self, symbol: str) -> UniverseEntry | None:
        return self.entries.get(symbol)

    def is_fresh(self, symbol: str, now: float) -> bool:
        entry = self.entries.get(symbol)
        return entry is not None and not entry.is_stale(now, self.max_age_sec)

    def retain(self, symbols: set[str]) -> list[str]:
        """Drop entries whose symbol left the tradable set. Returns the dropped symbols."""
        dropped = sorted(s for s in self.entries if s not in symbols)
        for s in dropped:
            del self.entries[s]
        return dropped

    def symbols(self) -> list[str]:
        return sorted(self.entries)

    def values(self) -> list[UniverseEntry]:
        return list(self.entries.values())

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, symbol: object) -> bool:
        return symbol in self.entries
