"""
ascend.constants — Shared Constants & the Leveling Formula
===========================================================

Single source of truth for presentation constants and the level curve.
Import from here instead of duplicating in cogs, services, and the API.
"""

from __future__ import annotations

import math
import time

# ---------------------------------------------------------------------------
# Presentation
# ---------------------------------------------------------------------------
RANK_BADGES: list[str] = ["\U0001f947", "\U0001f948", "\U0001f949"]  # 🥇🥈🥉

LEADERBOARD_SIZE = 10

MS_PER_MINUTE = 60_000
MS_PER_DAY = 24 * 60 * MS_PER_MINUTE


def now_ms() -> int:
    """Wall-clock time in milliseconds since the epoch."""
    return int(time.time() * 1000)


# ---------------------------------------------------------------------------
# Leveling formula — THE single canonical implementation
# ---------------------------------------------------------------------------
# level = floor(LEVEL_K * sqrt(xp)) with LEVEL_K = 1 / XP_SCALE.
XP_SCALE = 10
LEVEL_K = 1 / XP_SCALE


def level_for(xp: int) -> int:
    """Level reached with *xp* total experience.

    Equivalent to ``floor(0.1 * sqrt(xp))`` but computed with integer
    arithmetic so every threshold lands exactly on its level.
    """
    if xp <= 0:
        return 0
    return math.isqrt(int(xp)) // XP_SCALE


def xp_for_level(level: int) -> int:
    """Total XP at which *level* begins: ``(level / 0.1) ** 2``."""
    if level <= 0:
        return 0
    return (level * XP_SCALE) ** 2


def level_progress(xp: int) -> tuple[int, int]:
    """Return ``(xp into current level, xp span of current level)``."""
    level = level_for(xp)
    floor_xp = xp_for_level(level)
    return xp - floor_xp, xp_for_level(level + 1) - floor_xp
