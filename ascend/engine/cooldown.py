"""
ascend.engine.cooldown — Per-user message XP cooldown
=====================================================

Absence of an entry means "never awarded".  Entries older than the
window carry no information and are pruned by :meth:`prune`.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class CooldownTracker:
    """Throttles message XP to one award per user per ``window_ms``."""

    def __init__(self, window_ms: int = 60_000) -> None:
        self.window_ms = window_ms
        # {user_id: last_award_ms}
        self._last_award: dict[int, int] = {}

    def __len__(self) -> int:
        return len(self._last_award)

    def is_eligible(self, user_id: int, now: int) -> bool:
        """True if *user_id* may earn message XP at *now* (ms)."""
        last = self._last_award.get(user_id)
        return last is None or now - last >= self.window_ms

    def remaining_ms(self, user_id: int, now: int) -> int:
        """Milliseconds until *user_id* becomes eligible again (0 if eligible)."""
        last = self._last_award.get(user_id)
        if last is None:
            return 0
        return max(0, self.window_ms - (now - last))

    def record_award(self, user_id: int, now: int) -> None:
        self._last_award[user_id] = now

    def prune(self, now: int) -> int:
        """Drop expired entries and return how many were removed."""
        expired = [
            uid for uid, last in self._last_award.items()
            if now - last >= self.window_ms
        ]
        for uid in expired:
            del self._last_award[uid]
        if expired:
            logger.debug("Pruned %d expired cooldown entries", len(expired))
        return len(expired)
