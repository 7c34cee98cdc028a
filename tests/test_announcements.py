"""
tests/test_announcements.py — Award side-effect dispatch
=========================================================
Uses mocked bot/guild/channel objects so no Discord connection is needed.
"""

from __future__ import annotations

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from ascend.engine.events import LevelUp, XPSource
from ascend.services.announcement_service import (
    announce_level_up,
    dispatch_award,
    resolve_level_channel,
)


def run_async(coro):
    """Run an async coroutine synchronously for testing."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def _make_member(user_id=1):
    member = MagicMock()
    member.id = user_id
    member.display_name = "TestUser"
    member.display_avatar.url = "https://cdn.example.com/avatar.png"
    member.roles = []
    member.add_roles = AsyncMock()
    member.guild.get_role.side_effect = lambda rid: SimpleNamespace(id=rid, name=str(rid))
    return member


@pytest.fixture
def level_channel():
    channel = MagicMock(spec=discord.TextChannel)
    channel.send = AsyncMock()
    return channel


@pytest.fixture
def member():
    return _make_member()


@pytest.fixture
def bot(cfg, member, level_channel):
    bot = MagicMock()
    bot.cfg = cfg
    guild = MagicMock()
    guild.get_member.return_value = member
    bot.get_guild.return_value = guild
    bot.get_channel.side_effect = lambda cid: level_channel if cid == cfg.level_channel_id else None
    return bot


class TestResolveLevelChannel:
    def test_found(self, bot, level_channel):
        assert resolve_level_channel(bot) is level_channel

    def test_missing(self, bot):
        bot.get_channel.side_effect = None
        bot.get_channel.return_value = None
        assert resolve_level_channel(bot) is None


class TestAnnounceLevelUp:
    def test_sends_embed_with_mention(self, bot, level_channel):
        effect = LevelUp(user_id=1, old_level=0, new_level=1, total_xp=100)
        assert run_async(announce_level_up(bot, effect)) is True

        embed = level_channel.send.call_args.kwargs["embed"]
        assert "<@1>" in embed.description
        assert "Level 1" in embed.description

    def test_send_failure_is_swallowed(self, bot, level_channel):
        level_channel.send.side_effect = discord.HTTPException(
            MagicMock(status=500, reason="error"), "boom"
        )
        effect = LevelUp(user_id=1, old_level=0, new_level=1, total_xp=100)
        assert run_async(announce_level_up(bot, effect)) is False

    def test_member_gone(self, bot, level_channel):
        bot.get_guild.return_value.get_member.return_value = None
        effect = LevelUp(user_id=1, old_level=0, new_level=1, total_xp=100)
        assert run_async(announce_level_up(bot, effect)) is False
        level_channel.send.assert_not_awaited()


class TestDispatchAward:
    def test_level_up_announces_and_grants(self, bot, pipeline, member, level_channel):
        result = pipeline.award(1, 2500, XPSource.MESSAGE)
        run_async(dispatch_award(bot, result))

        level_channel.send.assert_awaited_once()
        granted = [c.args[0].id for c in member.add_roles.await_args_list]
        assert granted == [900, 902, 903]

    def test_no_effects_no_calls(self, bot, pipeline, member, level_channel):
        result = pipeline.award(1, 10, XPSource.MESSAGE)
        run_async(dispatch_award(bot, result))
        level_channel.send.assert_not_awaited()
        member.add_roles.assert_not_awaited()

    def test_none_result(self, bot):
        run_async(dispatch_award(bot, None))
        bot.get_guild.assert_not_called()

    def test_missing_channel_still_grants_roles(self, bot, pipeline, member):
        bot.get_channel.side_effect = None
        bot.get_channel.return_value = None
        result = pipeline.award(1, 100, XPSource.MESSAGE)
        run_async(dispatch_award(bot, result))
        member.add_roles.assert_awaited_once()

    def test_unexpected_error_never_propagates(self, bot, pipeline, member, level_channel):
        level_channel.send.side_effect = RuntimeError("unexpected")
        result = pipeline.award(1, 100, XPSource.MESSAGE)
        run_async(dispatch_award(bot, result))
        # Role sync still ran after the announcement blew up
        member.add_roles.assert_awaited_once()

    def test_xp_is_kept_when_side_effects_fail(self, bot, pipeline, store, level_channel):
        level_channel.send.side_effect = RuntimeError("unexpected")
        result = pipeline.award(1, 100, XPSource.MESSAGE)
        run_async(dispatch_award(bot, result))
        assert store.get(1).xp == 100
