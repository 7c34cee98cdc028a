"""
ascend.services.verification_service — Reaction-gated verification
====================================================================

Per-member state machine driven by reactions on one designated message
in the welcome channel:

    Unverified --(react ✅)--> Verified     grant role, one-time XP bonus
    Verified   --(unreact)---> Unverified   remove role

Both transitions are guarded by the member's *current* roles, so
repeated reactions are no-ops and the bonus is paid once per genuine
transition.  After each transition the prompt's live counts are
refreshed.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord

from ascend.services.embeds import build_verification_embed

if TYPE_CHECKING:
    from ascend.bot.core import AscendBot
    from ascend.engine.award import AwardResult

logger = logging.getLogger(__name__)


def _holds_role(member: discord.Member, role_id: int) -> bool:
    return any(role.id == role_id for role in member.roles)


class VerificationService:
    """Owns the verification message id and both transitions."""

    def __init__(self, bot: AscendBot) -> None:
        self.bot = bot
        self.cfg = bot.cfg
        self.message_id: int | None = bot.cfg.verify_message_id

    # -------------------------------------------------------------------
    # Matching
    # -------------------------------------------------------------------
    def matches(self, message_id: int, emoji_name: str | None) -> bool:
        """True for the configured emoji on the verification message."""
        return (
            self.message_id is not None
            and message_id == self.message_id
            and emoji_name == self.cfg.verify_emoji
        )

    def is_verification_message(self, message_id: int) -> bool:
        return self.message_id is not None and message_id == self.message_id

    # -------------------------------------------------------------------
    # Prompt lifecycle
    # -------------------------------------------------------------------
    def _welcome_channel(self, guild: discord.Guild) -> discord.TextChannel | None:
        channel = guild.get_channel(self.cfg.welcome_channel_id)
        if not isinstance(channel, discord.TextChannel):
            logger.warning(
                "Welcome channel %d not found or not a text channel",
                self.cfg.welcome_channel_id,
            )
            return None
        return channel

    def _build_embed(self, guild: discord.Guild) -> discord.Embed:
        role = guild.get_role(self.cfg.verified_role_id)
        verified = len(role.members) if role is not None else 0
        total = guild.member_count or len(guild.members)
        return build_verification_embed(total, verified, self.cfg.verify_emoji, self.cfg.xp)

    async def publish(self, guild: discord.Guild) -> int | None:
        """Post (or adopt) the verification prompt and return its id.

        A configured ``verify_message_id`` that still exists is refreshed
        in place instead of posting a duplicate.
        """
        channel = self._welcome_channel(guild)
        if channel is None:
            return None

        if self.message_id is not None:
            try:
                message = await channel.fetch_message(self.message_id)
                await message.edit(embed=self._build_embed(guild))
                logger.info("Adopted verification message %d in #%s", message.id, channel.name)
                return self.message_id
            except discord.NotFound:
                logger.warning(
                    "Verification message %d no longer exists — posting a new one",
                    self.message_id,
                )
            except discord.HTTPException:
                logger.exception("Failed to adopt verification message %d", self.message_id)
                return self.message_id

        try:
            message = await channel.send(embed=self._build_embed(guild))
            await message.add_reaction(self.cfg.verify_emoji)
        except discord.HTTPException:
            logger.exception("Failed to post verification message in #%s", channel.name)
            return self.message_id

        self.message_id = message.id
        logger.info("Verification message %d posted in #%s", message.id, channel.name)
        return self.message_id

    async def refresh(self, guild: discord.Guild) -> bool:
        """Re-render the prompt's member counts.  Returns True on success."""
        if self.message_id is None:
            return False
        channel = self._welcome_channel(guild)
        if channel is None:
            return False
        try:
            await channel.get_partial_message(self.message_id).edit(
                embed=self._build_embed(guild)
            )
        except discord.HTTPException:
            logger.exception("Failed to refresh verification message %d", self.message_id)
            return False
        return True

    # -------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------
    async def verify(self, member: discord.Member) -> AwardResult | None:
        """Unverified → Verified.  Returns the bonus award, or None if no transition."""
        role = member.guild.get_role(self.cfg.verified_role_id)
        if role is None:
            logger.error("Verified role %d not found", self.cfg.verified_role_id)
            return None
        if _holds_role(member, role.id):
            return None

        try:
            await member.add_roles(role, reason="Reaction verification")
        except discord.HTTPException:
            logger.exception("Failed to add verified role to %s", member)
            return None

        logger.info("%s verified", member)
        result = self.bot.pipeline.award_verification(member.id)
        await self.refresh(member.guild)
        return result

    async def unverify(self, member: discord.Member) -> bool:
        """Verified → Unverified.  Returns True if the role was removed."""
        role = member.guild.get_role(self.cfg.verified_role_id)
        if role is None or not _holds_role(member, role.id):
            return False

        try:
            await member.remove_roles(role, reason="Verification reaction removed")
        except discord.HTTPException:
            logger.exception("Failed to remove verified role from %s", member)
            return False

        logger.info("%s unverified", member)
        await self.refresh(member.guild)
        return True
