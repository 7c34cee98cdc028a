"""
ascend.services.embeds — Discord embed builders
================================================

All embed construction lives here so the services and cogs only need to
supply data — no layout concerns.
"""

from __future__ import annotations

from collections.abc import Sequence

import discord

from ascend.config import XPRates
from ascend.constants import MS_PER_MINUTE, RANK_BADGES, level_progress
from ascend.engine.events import LevelUp
from ascend.engine.progress import ProgressRecord

NO_DATA_TEXT = "No data available"


def build_level_up_embed(
    effect: LevelUp,
    display_name: str,
    avatar_url: str | None,
) -> discord.Embed:
    """Build a level-up celebration embed with @mention."""
    embed = discord.Embed(
        title="\U0001f389 Level Up!",
        description=f"<@{effect.user_id}> reached **Level {effect.new_level}**!",
        color=discord.Color.green(),
    )
    embed.add_field(name="\U0001f4c8 Previous Level", value=str(effect.old_level), inline=True)
    embed.add_field(name="\U0001f199 New Level", value=str(effect.new_level), inline=True)
    embed.add_field(name="\U0001f48e Total XP", value=str(effect.total_xp), inline=True)
    if effect.milestones:
        embed.add_field(
            name="\U0001f3c5 Milestones",
            value="\n".join(f"Level {t.level} — **{t.name}**" for t in effect.milestones),
            inline=False,
        )
    if avatar_url:
        embed.set_thumbnail(url=avatar_url)
    embed.set_footer(text=display_name)
    embed.timestamp = discord.utils.utcnow()
    return embed


def build_verification_embed(
    total_members: int,
    verified_count: int,
    emoji: str,
    rates: XPRates,
) -> discord.Embed:
    """Build the verification prompt with live member counts."""
    embed = discord.Embed(
        title="\U0001f512 Member Verification",
        description=(
            f"\U0001f3e0 **Total members:** {total_members}\n"
            f"✅ **Verified:** {verified_count}\n\n"
            f"**React with {emoji} below to verify and start earning XP!**"
        ),
        color=discord.Color.orange(),
    )
    embed.add_field(
        name="\U0001f3ae Level System",
        value=(
            "Earn XP from:\n"
            f"• \U0001f4dd Chat messages ({rates.message_min}-{rates.message_max} XP)\n"
            f"• \U0001f3a4 Voice activity ({rates.voice_per_minute} XP/min)\n"
            f"• \U0001f44d Giving reactions ({rates.reaction_given} XP)\n"
            f"• \U0001f381 Daily bonuses ({rates.daily_bonus} XP)"
        ),
        inline=False,
    )
    embed.set_footer(text="React to get full access to the server")
    return embed


def build_profile_embed(
    display_name: str,
    avatar_url: str | None,
    record: ProgressRecord,
    rank: int | None = None,
) -> discord.Embed:
    """Build a member's profile card."""
    into_level, span = level_progress(record.xp)
    embed = discord.Embed(
        title=f"\U0001f4ca {display_name}'s Profile",
        color=discord.Color.blue(),
    )
    if avatar_url:
        embed.set_thumbnail(url=avatar_url)
    embed.add_field(name="\U0001f3af Level", value=str(record.level), inline=True)
    embed.add_field(name="\U0001f48e Total XP", value=str(record.xp), inline=True)
    embed.add_field(name="\U0001f4c8 Progress", value=f"{into_level}/{span} XP", inline=True)
    embed.add_field(name="\U0001f4ac Messages", value=str(record.total_messages), inline=True)
    embed.add_field(
        name="\U0001f3a4 Voice Time",
        value=f"{record.voice_time_ms // MS_PER_MINUTE} minutes",
        inline=True,
    )
    embed.add_field(
        name="\U0001f4c5 Member Since",
        value=f"<t:{record.joined_at // 1000}:R>",
        inline=True,
    )
    if rank is not None:
        embed.set_footer(text=f"Rank #{rank}")
    embed.timestamp = discord.utils.utcnow()
    return embed


def format_leaderboard_line(rank: int, name: str, record: ProgressRecord) -> str:
    badge = RANK_BADGES[rank - 1] if rank <= len(RANK_BADGES) else f"{rank}."
    return f"{badge} **{name}** - Level {record.level} ({record.xp} XP)"


def build_leaderboard_embed(
    rows: Sequence[tuple[str, ProgressRecord]],
) -> discord.Embed:
    """Build the top-N leaderboard; ``rows`` is already ranked."""
    lines = [
        format_leaderboard_line(i, name, record)
        for i, (name, record) in enumerate(rows, start=1)
    ]
    embed = discord.Embed(
        title="\U0001f3c6 Server Leaderboard",
        description="\n".join(lines) or NO_DATA_TEXT,
        color=discord.Color.gold(),
    )
    embed.timestamp = discord.utils.utcnow()
    return embed

