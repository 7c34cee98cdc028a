"""
ascend.bot.cogs.social — Message XP
====================================

Pipeline:
1. on_message fires → gate checks (bot, DM, other guild)
2. XPAwardPipeline.award_message (cooldown-gated, random amount)
3. Dispatch level-up effects and persist via ``bot.apply_awards``

Expired cooldown entries are pruned every few minutes.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands, tasks

from ascend.constants import now_ms

if TYPE_CHECKING:
    from ascend.bot.core import AscendBot

logger = logging.getLogger(__name__)


class Social(commands.Cog, name="Social"):
    """Awards XP for chat messages, one award per cooldown window."""

    def __init__(self, bot: AscendBot) -> None:
        self.bot = bot

    async def cog_load(self) -> None:
        self._prune_cooldowns.start()

    async def cog_unload(self) -> None:
        self._prune_cooldowns.cancel()

    @tasks.loop(minutes=5)
    async def _prune_cooldowns(self) -> None:
        """Drop cooldown entries whose window has elapsed."""
        self.bot.pipeline.cooldowns.prune(now_ms())

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message) -> None:
        try:
            await self._handle_message(message)
        except Exception:
            logger.exception(
                "Error processing message %s from user %s",
                message.id, message.author.id,
                extra={"event_type": "message", "user_id": message.author.id},
            )

    async def _handle_message(self, message: discord.Message) -> None:
        """Inner message handler (separated for error isolation)."""
        if message.author.bot:
            return
        if message.guild is None or message.guild.id != self.bot.cfg.guild_id:
            return

        result = self.bot.pipeline.award_message(message.author.id)
        if result is None:
            return

        logger.debug(
            "Message XP: %s +%d (total %d, level %d)",
            message.author.display_name, result.amount,
            result.record.xp, result.new_level,
        )
        await self.bot.apply_awards(result)


async def setup(bot: AscendBot) -> None:
    await bot.add_cog(Social(bot))
