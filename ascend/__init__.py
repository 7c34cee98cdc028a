"""
Ascend — XP, Levels & Verification for a Discord Community
===========================================================
Grants experience for chat, voice, reactions, and daily logins, derives
levels from it, announces level-ups, hands out reward roles at level
milestones, and gates a "Verified" role behind a reaction prompt.

Package layout::

    ascend/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Level curve + presentation constants
    ├── errors.py          # InvalidAwardError, PersistenceError
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + run_db async bridge
    │   └── models.py      # progress_snapshots table
    ├── engine/
    │   ├── progress.py    # ProgressRecord
    │   ├── award.py       # XPAwardPipeline (the only XP writer)
    │   ├── cooldown.py    # Message XP cooldown
    │   ├── voice_sessions.py  # Open voice sessions
    │   ├── rewards.py     # Level → reward role resolution
    │   └── events.py      # XPSource + LevelUp/RoleSync effects
    ├── services/
    │   ├── progress_store.py  # In-memory map + JSON/DB snapshot backends
    │   ├── announcement_service.py  # Executes award effects
    │   ├── verification_service.py  # Reaction verification
    │   ├── daily_bonus.py     # Daily bonus sweep
    │   └── embeds.py          # Embed builders
    ├── bot/
    │   ├── core.py        # Bot subclass, cog loader, shutdown flush
    │   └── cogs/          # social, reactions, voice, membership, meta, tasks
    └── api/
        ├── main.py        # FastAPI app
        └── routes/        # Read-only public endpoints
"""

__version__ = "0.1.0"
