"""
ascend.engine.progress — Per-user progress record
==================================================

One :class:`ProgressRecord` per Discord member.  ``level`` is always
derived from ``xp`` through :func:`ascend.constants.level_for`; it is
never read back from storage as authority.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ascend.constants import level_for

__all__ = ["ProgressRecord"]

# camelCase keys from the legacy userdata.json layout.
_LEGACY_KEYS: dict[str, str] = {
    "totalMessages": "total_messages",
    "voiceTime": "voice_time_ms",
    "lastDaily": "last_daily_bonus_at",
    "joinedAt": "joined_at",
}


@dataclass(slots=True)
class ProgressRecord:
    """Mutable XP/level state for one user."""

    xp: int = 0
    level: int = 0
    total_messages: int = 0
    voice_time_ms: int = 0
    last_daily_bonus_at: int = 0
    joined_at: int = 0

    def add_xp(self, amount: int) -> int:
        """Add *amount* XP, re-derive the level, and return the old level."""
        old_level = self.level
        self.xp += amount
        self.level = level_for(self.xp)
        return old_level

    def to_dict(self) -> dict[str, int]:
        return {
            "xp": self.xp,
            "level": self.level,
            "total_messages": self.total_messages,
            "voice_time_ms": self.voice_time_ms,
            "last_daily_bonus_at": self.last_daily_bonus_at,
            "joined_at": self.joined_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProgressRecord:
        """Rebuild a record from its serialized form.

        Accepts legacy camelCase keys.  The stored ``level`` is ignored and
        recomputed from ``xp``.
        """
        values = {_LEGACY_KEYS.get(k, k): v for k, v in data.items()}
        xp = int(values.get("xp", 0) or 0)
        return cls(
            xp=xp,
            level=level_for(xp),
            total_messages=int(values.get("total_messages", 0) or 0),
            voice_time_ms=int(values.get("voice_time_ms", 0) or 0),
            last_daily_bonus_at=int(values.get("last_daily_bonus_at", 0) or 0),
            joined_at=int(values.get("joined_at", 0) or 0),
        )
