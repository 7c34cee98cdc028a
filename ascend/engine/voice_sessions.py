"""
ascend.engine.voice_sessions — Open voice-session bookkeeping
=============================================================

Tracks when each member joined voice.  A member holds at most one open
session: a second join before a leave replaces the start time (last
join wins) and the earlier segment is not counted.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class VoiceSessionTracker:
    """Maps user id → session start (ms since epoch)."""

    def __init__(self) -> None:
        self._sessions: dict[int, int] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def on_join(self, user_id: int, now: int) -> None:
        if user_id in self._sessions:
            logger.debug(
                "User %s joined voice with a session already open; restarting it",
                user_id,
            )
        self._sessions[user_id] = now

    def on_leave(self, user_id: int, now: int) -> int | None:
        """Close the session and return its duration in ms.

        Returns ``None`` when no session is open (missed join, bot restart).
        """
        started_at = self._sessions.pop(user_id, None)
        if started_at is None:
            return None
        return max(0, now - started_at)

    def is_open(self, user_id: int) -> bool:
        return user_id in self._sessions
