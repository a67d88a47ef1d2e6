from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone


@dataclass
class EngineControls:
    """
    Operator switches shared by the orchestrator and its agents.

    pause: the whole tick is skipped.
    drain: no new position is opened; open ones still unwind.
    """

    pause: bool = False
    drain: bool = False
    changed_at: datetime | None = None

    def set_pause(self, enabled: bool) -> None:
        self.pause = bool(enabled)
        self.changed_at = datetime.now(timezone.utc)

    def set_drain(self, enabled: bool) -> None:
        self.drain = bool(enabled)
        self.changed_at = datetime.now(timezone.utc)

    def to_dict(self) -> dict[str, object]:
        return {
            "pause": self.pause,
            "drain": self.drain,
            "changed_at": self.changed_at.isoformat() if self.changed_at else None,
        }
