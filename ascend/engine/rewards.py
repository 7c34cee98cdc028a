"""
ascend.engine.rewards — Level → role reward resolution
=======================================================

Pure functions over the static :class:`~ascend.config.RewardTier` table.
Held roles are always supplied by the caller from the live member, so a
role removed by a moderator is granted again on the next level event.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable

from ascend.config import RewardTier

__all__ = ["resolve_role_grants", "tiers_crossed"]


def resolve_role_grants(
    level: int,
    held_role_ids: Collection[int],
    tiers: Iterable[RewardTier],
) -> list[RewardTier]:
    """Return every role-bearing tier at or below *level* not already held."""
    return [
        tier for tier in tiers
        if tier.level <= level
        and tier.role_id is not None
        and tier.role_id not in held_role_ids
    ]


def tiers_crossed(
    old_level: int, new_level: int, tiers: Iterable[RewardTier]
) -> list[RewardTier]:
    """Tiers whose threshold lies in ``(old_level, new_level]``.

    Display-only tiers (no role) are included; they are milestones for
    the level-up announcement.
    """
    return [tier for tier in tiers if old_level < tier.level <= new_level]
