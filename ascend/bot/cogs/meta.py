"""
ascend.bot.cogs.meta — Profile & Leaderboard Commands
======================================================

Hybrid commands (prefix and slash):
- profile / level [member] — level, XP, progress, messages, voice time
- leaderboard / top        — ten highest-XP members
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from ascend.constants import LEADERBOARD_SIZE
from ascend.services.embeds import build_leaderboard_embed, build_profile_embed

if TYPE_CHECKING:
    from ascend.bot.core import AscendBot
    from ascend.engine.progress import ProgressRecord


class Meta(commands.Cog, name="Meta"):
    """Profile lookups and the XP leaderboard."""

    def __init__(self, bot: AscendBot) -> None:
        self.bot = bot

    def _display_name(self, user_id: int) -> str:
        guild = self.bot.get_guild(self.bot.cfg.guild_id)
        member = guild.get_member(user_id) if guild else None
        if member is not None:
            return member.display_name
        user = self.bot.get_user(user_id)
        return user.name if user is not None else f"Unknown ({user_id})"

    def leaderboard_rows(self) -> list[tuple[str, ProgressRecord]]:
        return [
            (self._display_name(uid), record)
            for uid, record in self.bot.store.top(LEADERBOARD_SIZE)
        ]

    # -------------------------------------------------------------------
    # /profile
    # -------------------------------------------------------------------
    @commands.hybrid_command(  # type: ignore[arg-type]
        name="profile",
        aliases=["level"],
        description="View your (or another member's) level and XP.",
    )
    @app_commands.describe(member="The member to look up (defaults to you)")
    async def profile(self, ctx: commands.Context, member: discord.Member | None = None) -> None:
        target = member or ctx.author
        record = self.bot.pipeline.touch(target.id)
        await self.bot.store.save()

        embed = build_profile_embed(
            target.display_name,
            target.display_avatar.url,
            record,
            rank=self.bot.store.rank_of(target.id),
        )
        await ctx.reply(embed=embed)

    # -------------------------------------------------------------------
    # /leaderboard
    # -------------------------------------------------------------------
    @commands.hybrid_command(  # type: ignore[arg-type]
        name="leaderboard",
        aliases=["top"],
        description="Show the ten members with the most XP.",
    )
    async def leaderboard(self, ctx: commands.Context) -> None:
        await ctx.reply(embed=build_leaderboard_embed(self.leaderboard_rows()))


async def setup(bot: AscendBot) -> None:
    await bot.add_cog(Meta(bot))
