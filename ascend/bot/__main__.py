"""
ascend.bot.__main__ — Entry point for ``python -m ascend.bot``
==============================================================

Wiring:
1. Load .env (secrets).
2. Load config.yaml.
3. Build the persistence backend and load the progress store.
4. Create the AscendBot.
5. Run until SIGINT/SIGTERM, then flush the store one last time.

Run with::

    python -m ascend.bot
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import sys

from dotenv import load_dotenv

from ascend.bot.core import AscendBot
from ascend.config import load_config
from ascend.errors import PersistenceError
from ascend.services.progress_store import UserProgressStore, create_backend

logger = logging.getLogger("ascend")


def configure_logging() -> None:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
        datefmt="%H:%M:%S",
    )


def install_shutdown_handlers(
    loop: asyncio.AbstractEventLoop, bot: AscendBot
) -> set[asyncio.Task]:
    """Close *bot* on SIGINT/SIGTERM.

    Returns the set holding in-flight close tasks; each task stays
    referenced until it finishes.
    """
    pending: set[asyncio.Task] = set()

    def _request_close() -> None:
        logger.info("Shutdown signal received")
        task = loop.create_task(bot.close())
        pending.add(task)
        task.add_done_callback(pending.discard)

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _request_close)
        except NotImplementedError:  # Windows
            pass
    return pending


async def _serve(bot: AscendBot, token: str) -> None:
    """Run the bot, closing it cleanly on SIGINT/SIGTERM."""
    install_shutdown_handlers(asyncio.get_running_loop(), bot)

    async with bot:
        await bot.start(token)


def main() -> None:
    """Bootstrap and run the Ascend bot."""

    # 1. Environment variables (secrets).
    load_dotenv()
    configure_logging()

    token = os.getenv("DISCORD_TOKEN")
    if not token or token == "your-discord-bot-token-here":
        logger.critical(
            "DISCORD_TOKEN is not set.  "
            "Copy .env.example → .env and paste your bot token."
        )
        sys.exit(1)

    # 2. Configuration.
    cfg = load_config()
    logger.info("Config loaded — Community: %s", cfg.community_name)

    # 3. Progress store.
    store = UserProgressStore(create_backend(cfg.storage))
    try:
        store.load()
    except PersistenceError:
        logger.critical("Progress store is unreadable; refusing to start", exc_info=True)
        sys.exit(1)

    # 4. Bot.
    bot = AscendBot(cfg=cfg, store=store)

    # 5. Run (blocks until Ctrl+C or SIGTERM).
    logger.info("Starting Ascend bot…")
    try:
        asyncio.run(_serve(bot, token))
    except KeyboardInterrupt:
        logger.info("Shutting down gracefully…")
    finally:
        store.flush()


if __name__ == "__main__":
    main()
