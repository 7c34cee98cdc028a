"""
ascend.engine.events — XP sources and award side effects
=========================================================

The award pipeline never touches Discord.  Instead it returns the side
effects an award implies as plain dataclasses; the announcement service
executes them after the in-memory mutation is complete.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from ascend.config import RewardTier

__all__ = ["XPSource", "LevelUp", "RoleSync", "Effect"]


class XPSource(enum.StrEnum):
    """Every activity that can grant XP."""
    MESSAGE = "message"
    REACTION_GIVEN = "reaction_given"
    REACTION_RECEIVED = "reaction_received"
    VOICE = "voice"
    DAILY = "daily"
    VERIFICATION = "verification"


@dataclass(frozen=True, slots=True)
class LevelUp:
    """Announce that *user_id* moved from *old_level* to *new_level*."""

    user_id: int
    old_level: int
    new_level: int
    total_xp: int
    levels_crossed: tuple[int, ...] = ()
    milestones: tuple[RewardTier, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class RoleSync:
    """Grant every reward role due at *level* that the member lacks."""

    user_id: int
    level: int


Effect = LevelUp | RoleSync
