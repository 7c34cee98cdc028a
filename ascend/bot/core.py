"""
ascend.bot.core — Bot Instance & Cog Loader
============================================

Defines :class:`AscendBot`, a ``commands.Bot`` subclass that:

1. Owns the engine state for its lifetime: the progress store, the award
   pipeline (with its cooldown and voice trackers), and the verification
   service.  Cogs reach them via ``self.bot.*``.
2. Loads every Cog listed in :data:`EXTENSIONS`.
3. On first ready: syncs the command tree to the guild and posts (or
   adopts) the verification prompt.
4. On close: flushes the progress store before disconnecting.
"""

from __future__ import annotations

import logging

import discord
from discord.ext import commands

from ascend.config import AscendConfig
from ascend.engine.award import AwardResult, XPAwardPipeline
from ascend.services.announcement_service import dispatch_award
from ascend.services.progress_store import UserProgressStore
from ascend.services.verification_service import VerificationService

logger = logging.getLogger(__name__)

# Cog modules to load on startup.
EXTENSIONS: list[str] = [
    "ascend.bot.cogs.social",
    "ascend.bot.cogs.reactions",
    "ascend.bot.cogs.voice",
    "ascend.bot.cogs.membership",
    "ascend.bot.cogs.meta",
    "ascend.bot.cogs.tasks",
]


class AscendBot(commands.Bot):
    """Custom Bot subclass that carries the engine state.

    Parameters
    ----------
    cfg:
        The parsed :class:`AscendConfig` from ``config.yaml``.
    store:
        A loaded :class:`UserProgressStore`.
    """

    def __init__(self, cfg: AscendConfig, store: UserProgressStore) -> None:
        # Privileged intents (must enable in Developer Portal):
        #   MESSAGE_CONTENT: prefix commands
        #   GUILD_MEMBERS:   join/leave, role checks, member cache
        #   GUILD_PRESENCES: online status for the daily bonus
        intents = discord.Intents.default()
        intents.message_content = True
        intents.members = True
        intents.presences = True

        super().__init__(
            command_prefix=cfg.bot_prefix,
            intents=intents,
            description=f"{cfg.community_name} leveling bot",
        )

        self.cfg = cfg
        self.store = store
        self.pipeline = XPAwardPipeline(store, cfg.xp, cfg.reward_tiers)
        self.verification = VerificationService(self)
        self._first_ready_done = False

    # -----------------------------------------------------------------------
    # Award application
    # -----------------------------------------------------------------------
    async def apply_awards(self, *results: AwardResult | None) -> None:
        """Dispatch side effects for *results*, then persist.

        Persistence runs even if a side effect blows up.
        """
        try:
            for result in results:
                await dispatch_award(self, result)
        finally:
            await self.store.save()

    # -----------------------------------------------------------------------
    # Lifecycle hooks
    # -----------------------------------------------------------------------
    async def setup_hook(self) -> None:
        """Load all Cog extensions.  One broken Cog doesn't stop the bot."""
        for ext in EXTENSIONS:
            try:
                await self.load_extension(ext)
                logger.info("Loaded extension: %s", ext)
            except Exception as exc:
                logger.error("Failed to load extension %s: %s", ext, exc)

    async def on_ready(self) -> None:
        """Fired when the bot has connected and the cache is populated.

        Reconnects fire this again; the one-time setup runs only once.
        """
        assert self.user is not None
        logger.info("Logged in as %s (ID: %s)", self.user.name, self.user.id)
        if self._first_ready_done:
            return
        self._first_ready_done = True

        guild = self.get_guild(self.cfg.guild_id)
        if guild is None:
            logger.warning("Guild %d not found — verification prompt skipped", self.cfg.guild_id)
            return

        try:
            target = discord.Object(id=guild.id)
            self.tree.copy_global_to(guild=target)
            synced = await self.tree.sync(guild=target)
            logger.info("Synced %d commands to guild %s", len(synced), guild.name)
        except discord.HTTPException:
            logger.exception("Command tree sync failed")

        await self.verification.publish(guild)

    async def close(self) -> None:
        """Graceful shutdown — flush progress, then disconnect."""
        logger.info("Bot shutting down… saving progress")
        await self.store.save()
        await super().close()
