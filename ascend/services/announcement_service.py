"""
ascend.services.announcement_service — Award side-effect executor
==================================================================

Executes the effects returned by the award pipeline: level-up
announcements in the level channel and reward-role grants.

Everything here is best-effort.  A missing guild, member, channel, or
role is a logged no-op, and Discord API failures are logged and
swallowed.  The XP mutation that produced the effect is never rolled
back.

Embed construction lives in :mod:`ascend.services.embeds`.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord.abc import Messageable

from ascend.config import RewardTier
from ascend.engine.events import LevelUp, RoleSync
from ascend.engine.rewards import resolve_role_grants
from ascend.services.embeds import build_level_up_embed

if TYPE_CHECKING:
    from ascend.bot.core import AscendBot
    from ascend.engine.award import AwardResult

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Resolution helpers
# ---------------------------------------------------------------------------
def _resolve_member(bot: AscendBot, user_id: int) -> discord.Member | None:
    guild = bot.get_guild(bot.cfg.guild_id)
    if guild is None:
        logger.warning("Guild %d not available — skipping side effects", bot.cfg.guild_id)
        return None
    member = guild.get_member(user_id)
    if member is None:
        logger.debug("Member %s not cached in guild %d", user_id, guild.id)
    return member


def resolve_level_channel(bot: AscendBot) -> Messageable | None:
    """The configured level-up channel, if it exists and can receive messages."""
    ch = bot.get_channel(bot.cfg.level_channel_id)
    if ch is not None and isinstance(ch, Messageable):
        return ch
    logger.warning("Level channel %d not found", bot.cfg.level_channel_id)
    return None


# ---------------------------------------------------------------------------
# Effect handlers
# ---------------------------------------------------------------------------
async def announce_level_up(bot: AscendBot, effect: LevelUp) -> bool:
    """Post the level-up embed.  Returns True if a message was sent."""
    member = _resolve_member(bot, effect.user_id)
    if member is None:
        return False
    channel = resolve_level_channel(bot)
    if channel is None:
        return False

    embed = build_level_up_embed(effect, member.display_name, member.display_avatar.url)
    try:
        await channel.send(embed=embed)
    except discord.HTTPException:
        logger.exception(
            "Failed to send level-up announcement for user %s", effect.user_id,
            extra={"user_id": effect.user_id, "level": effect.new_level},
        )
        return False
    return True


async def sync_reward_roles(bot: AscendBot, effect: RoleSync) -> list[RewardTier]:
    """Grant every due reward role the member does not currently hold.

    Holdings are read from the live member, so roles removed by hand are
    granted again.  Returns the tiers actually granted.
    """
    member = _resolve_member(bot, effect.user_id)
    if member is None:
        return []

    held = {role.id for role in member.roles}
    granted: list[RewardTier] = []
    for tier in resolve_role_grants(effect.level, held, bot.cfg.reward_tiers):
        role = member.guild.get_role(tier.role_id)
        if role is None:
            logger.warning("Reward role %s (%s) not found", tier.role_id, tier.name)
            continue
        try:
            await member.add_roles(role, reason=f"Reached level {tier.level}: {tier.name}")
        except discord.HTTPException:
            logger.exception(
                "Failed to grant role %s to user %s", tier.name, effect.user_id,
                extra={"user_id": effect.user_id, "role_id": tier.role_id},
            )
            continue
        granted.append(tier)
        logger.info("Granted role %s to %s", tier.name, member)
    return granted


# ---------------------------------------------------------------------------
# Public API — called by cogs
# ---------------------------------------------------------------------------
async def dispatch_award(bot: AscendBot, result: AwardResult | None) -> None:
    """Execute every side effect of *result*.  Never raises."""
    if result is None:
        return
    for effect in result.effects:
        try:
            if isinstance(effect, LevelUp):
                await announce_level_up(bot, effect)
            elif isinstance(effect, RoleSync):
                await sync_reward_roles(bot, effect)
        except Exception:
            logger.exception(
                "Side effect %s failed for user %s", type(effect).__name__, result.user_id,
            )
