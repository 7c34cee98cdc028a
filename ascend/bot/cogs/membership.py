"""
ascend.bot.cogs.membership — Member Join/Leave
===============================================

A join creates the member's progress record; both join and leave
refresh the verification prompt's member counts.  Leaving never deletes
progress, so a returning member keeps their history.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

if TYPE_CHECKING:
    from ascend.bot.core import AscendBot

logger = logging.getLogger(__name__)


class Membership(commands.Cog, name="Membership"):
    """Creates records for new members and keeps the prompt counts live."""

    def __init__(self, bot: AscendBot) -> None:
        self.bot = bot

    @commands.Cog.listener()
    async def on_member_join(self, member: discord.Member) -> None:
        try:
            if member.guild.id != self.bot.cfg.guild_id:
                return
            await self.bot.verification.refresh(member.guild)
            if member.bot:
                return
            self.bot.pipeline.touch(member.id)
            await self.bot.store.save()
            logger.info("Member joined: %s (ID: %d)", member.display_name, member.id)
        except Exception:
            logger.exception(
                "Error processing member_join for %s", member.id,
                extra={"event_type": "member_join", "user_id": member.id},
            )

    @commands.Cog.listener()
    async def on_member_remove(self, member: discord.Member) -> None:
        try:
            if member.guild.id != self.bot.cfg.guild_id:
                return
            await self.bot.verification.refresh(member.guild)
            logger.info("Member left: %s (ID: %d)", member.display_name, member.id)
        except Exception:
            logger.exception(
                "Error processing member_leave for %s", member.id,
                extra={"event_type": "member_leave", "user_id": member.id},
            )


async def setup(bot: AscendBot) -> None:
    await bot.add_cog(Membership(bot))
