"""
ascend.bot.cogs.reactions — Reaction XP & Verification
=======================================================

Listens for raw reaction events (so uncached messages still count):

- The verification emoji on the verification message drives the
  Unverified ⇄ Verified transitions.
- Any other reaction (not on the verification message) awards
  REACTION_GIVEN XP to the reactor and REACTION_RECEIVED XP to the
  message author, unless the author is a bot.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

if TYPE_CHECKING:
    from ascend.bot.core import AscendBot
    from ascend.engine.award import AwardResult

logger = logging.getLogger(__name__)


class Reactions(commands.Cog, name="Reactions"):
    """Awards reaction XP and routes verification reactions."""

    def __init__(self, bot: AscendBot) -> None:
        self.bot = bot

    @commands.Cog.listener()
    async def on_raw_reaction_add(self, payload: discord.RawReactionActionEvent) -> None:
        try:
            await self._handle_add(payload)
        except Exception:
            logger.exception(
                "Error processing reaction on message %s from user %s",
                payload.message_id, payload.user_id,
            )

    @commands.Cog.listener()
    async def on_raw_reaction_remove(self, payload: discord.RawReactionActionEvent) -> None:
        try:
            await self._handle_remove(payload)
        except Exception:
            logger.exception(
                "Error processing reaction remove on message %s from user %s",
                payload.message_id, payload.user_id,
            )

    async def _handle_add(self, payload: discord.RawReactionActionEvent) -> None:
        """Inner reaction-add handler (separated for error isolation)."""
        if payload.guild_id != self.bot.cfg.guild_id:
            return
        member = payload.member
        if member is None or member.bot:
            return

        verification = self.bot.verification
        if verification.matches(payload.message_id, payload.emoji.name):
            await self.bot.apply_awards(await verification.verify(member))
            return
        if verification.is_verification_message(payload.message_id):
            return

        results: list[AwardResult] = [
            self.bot.pipeline.award_reaction_given(payload.user_id)
        ]

        author = await self._fetch_author(payload)
        if author is not None and not author.bot:
            results.append(self.bot.pipeline.award_reaction_received(author.id))

        await self.bot.apply_awards(*results)

    async def _handle_remove(self, payload: discord.RawReactionActionEvent) -> None:
        """Inner reaction-remove handler.  Only verification cares."""
        if payload.guild_id != self.bot.cfg.guild_id:
            return
        if not self.bot.verification.matches(payload.message_id, payload.emoji.name):
            return

        guild = self.bot.get_guild(payload.guild_id)
        member = guild.get_member(payload.user_id) if guild else None
        if member is None or member.bot:
            return
        await self.bot.verification.unverify(member)

    async def _fetch_author(
        self, payload: discord.RawReactionActionEvent
    ) -> discord.abc.User | None:
        """Resolve who wrote the reacted-to message, or None if unreachable."""
        channel = self.bot.get_channel(payload.channel_id)
        if channel is None:
            try:
                channel = await self.bot.fetch_channel(payload.channel_id)
            except (discord.NotFound, discord.Forbidden, discord.HTTPException):
                return None
        if not isinstance(channel, (discord.TextChannel, discord.Thread, discord.VoiceChannel)):
            return None
        try:
            message = await channel.fetch_message(payload.message_id)
        except (discord.NotFound, discord.Forbidden, discord.HTTPException):
            return None
        return message.author


async def setup(bot: AscendBot) -> None:
    await bot.add_cog(Reactions(bot))
