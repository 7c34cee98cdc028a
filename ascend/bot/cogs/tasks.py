"""
ascend.bot.cogs.tasks — Periodic Background Tasks
==================================================

- **Daily bonus sweep** — every ``xp.daily_check_seconds`` (default 60),
  grants the daily bonus to online members whose last bonus is more than
  24 hours old.

The loop runs as a ``discord.ext.tasks`` background task so it never
holds up gateway event handling.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands, tasks

from ascend.constants import now_ms
from ascend.services.daily_bonus import run_daily_sweep

if TYPE_CHECKING:
    from ascend.bot.core import AscendBot

logger = logging.getLogger(__name__)


class PeriodicTasks(commands.Cog):
    """Cog for scheduled background tasks."""

    def __init__(self, bot: AscendBot) -> None:
        self.bot = bot

    async def cog_load(self) -> None:
        self.daily_bonus_loop.change_interval(seconds=self.bot.cfg.xp.daily_check_seconds)
        self.daily_bonus_loop.start()

    async def cog_unload(self) -> None:
        self.daily_bonus_loop.cancel()

    def presence_of(self, user_id: int) -> bool | None:
        """Online status for the sweep; None when the member can't be resolved."""
        guild = self.bot.get_guild(self.bot.cfg.guild_id)
        if guild is None:
            return None
        member = guild.get_member(user_id)
        if member is None:
            return None
        return member.status != discord.Status.offline

    # -------------------------------------------------------------------
    # Daily bonus — runs every minute by default
    # -------------------------------------------------------------------
    @tasks.loop(seconds=60)
    async def daily_bonus_loop(self):
        """Grant daily bonuses to eligible online members."""
        try:
            results = run_daily_sweep(
                self.bot.store, self.bot.pipeline, self.presence_of, now_ms()
            )
            if results:
                await self.bot.apply_awards(*results)
        except Exception:
            logger.exception("Daily bonus sweep failed", extra={"task": "daily_bonus"})

    @daily_bonus_loop.before_loop
    async def _wait_daily_bonus(self):
        await self.bot.wait_until_ready()


async def setup(bot: AscendBot) -> None:
    await bot.add_cog(PeriodicTasks(bot))
