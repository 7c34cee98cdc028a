"""
ascend.bot.cogs.voice — Voice Session XP
=========================================

Join opens a session, leave closes it and awards whole minutes.  Moving
between channels keeps the session open.  Members already sitting in
voice when the bot connects get a session starting at connect time.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

if TYPE_CHECKING:
    from ascend.bot.core import AscendBot

logger = logging.getLogger(__name__)


class Voice(commands.Cog, name="Voice"):
    """Tracks voice channel presence and awards XP on leave."""

    def __init__(self, bot: AscendBot) -> None:
        self.bot = bot

    @commands.Cog.listener()
    async def on_ready(self) -> None:
        """Open sessions for members who were in voice before we connected."""
        guild = self.bot.get_guild(self.bot.cfg.guild_id)
        if guild is None:
            return
        voice = self.bot.pipeline.voice
        opened = 0
        for vc in guild.voice_channels:
            for member in vc.members:
                if member.bot or voice.is_open(member.id):
                    continue
                self.bot.pipeline.voice_join(member.id)
                opened += 1
        if opened:
            logger.info("Opened %d voice sessions for members already connected", opened)
            await self.bot.store.save()

    @commands.Cog.listener()
    async def on_voice_state_update(
        self,
        member: discord.Member,
        before: discord.VoiceState,
        after: discord.VoiceState,
    ) -> None:
        try:
            await self._handle_voice_update(member, before, after)
        except Exception:
            logger.exception("Error processing voice state update for user %s", member.id)

    async def _handle_voice_update(
        self,
        member: discord.Member,
        before: discord.VoiceState,
        after: discord.VoiceState,
    ) -> None:
        """Inner voice state handler — join / leave; moves and mutes are ignored."""
        if member.bot or member.guild.id != self.bot.cfg.guild_id:
            return

        if before.channel is None and after.channel is not None:
            self.bot.pipeline.voice_join(member.id)
            logger.debug("%s joined voice channel %s", member, after.channel)
            await self.bot.store.save()

        elif before.channel is not None and after.channel is None:
            result = self.bot.pipeline.voice_leave(member.id)
            logger.debug("%s left voice channel %s", member, before.channel)
            if result is not None:
                await self.bot.apply_awards(result)


async def setup(bot: AscendBot) -> None:
    await bot.add_cog(Voice(bot))
