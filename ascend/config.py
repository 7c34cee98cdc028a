"""
ascend.config — YAML Configuration Loader
==========================================

Reads ``config.yaml`` for the guild identity, channel/role wiring, XP
rates, the reward-tier table, and the persistence backend.  Secrets
(the bot token, ``DATABASE_URL``) stay in ``.env``.

Usage::

    from ascend.config import load_config

    cfg = load_config()          # reads ./config.yaml by default
    print(cfg.guild_id)          # 1403203750583341066
    print(cfg.xp.voice_per_minute)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

DEFAULT_CONFIG_PATH = "config.yaml"


# ---------------------------------------------------------------------------
# Typed settings objects
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class RewardTier:
    """A level milestone, optionally granting a Discord role."""

    level: int
    name: str
    role_id: int | None = None


@dataclass(frozen=True, slots=True)
class XPRates:
    """Per-event XP amounts and timing windows (milliseconds)."""

    message_min: int = 15
    message_max: int = 25
    message_cooldown_ms: int = 60_000
    reaction_given: int = 5
    reaction_received: int = 3
    voice_per_minute: int = 10
    daily_bonus: int = 100
    verification_bonus: int = 100
    daily_check_seconds: int = 60


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Where progress snapshots are written."""

    backend: str = "json"          # "json" or "database"
    path: str = "userdata.json"    # json backend only
    key: str = "default"           # database backend row key


@dataclass(frozen=True, slots=True)
class AscendConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Identity
    community_name: str

    # Discord
    bot_prefix: str
    guild_id: int
    welcome_channel_id: int
    level_channel_id: int
    verified_role_id: int
    verify_emoji: str = "✅"  # ✅
    verify_message_id: int | None = None

    # Gameplay
    xp: XPRates = field(default_factory=XPRates)
    reward_tiers: tuple[RewardTier, ...] = ()

    # Persistence
    storage: StorageConfig = field(default_factory=StorageConfig)

    # Read-only API
    api_port: int = 8000


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------
def _parse_xp(raw: dict | None) -> XPRates:
    raw = raw or {}
    defaults = XPRates()
    rates = XPRates(**{
        name: int(raw.get(name, getattr(defaults, name)))
        for name in XPRates.__dataclass_fields__
    })
    if rates.message_min <= 0 or rates.message_max < rates.message_min:
        raise ValueError(
            f"xp.message_min/message_max must satisfy 0 < min <= max "
            f"(got {rates.message_min}..{rates.message_max})"
        )
    for name in XPRates.__dataclass_fields__:
        if getattr(rates, name) <= 0:
            raise ValueError(f"xp.{name} must be positive")
    return rates


def _parse_tiers(raw: list | None) -> tuple[RewardTier, ...]:
    tiers: list[RewardTier] = []
    for entry in raw or []:
        role_id = entry.get("role_id")
        tiers.append(RewardTier(
            level=int(entry["level"]),
            name=str(entry["name"]),
            role_id=int(role_id) if role_id else None,
        ))
    levels = [t.level for t in tiers]
    if len(levels) != len(set(levels)):
        raise ValueError("reward_tiers contains duplicate levels")
    return tuple(sorted(tiers, key=lambda t: t.level))


def _parse_storage(raw: dict | None) -> StorageConfig:
    raw = raw or {}
    storage = StorageConfig(
        backend=str(raw.get("backend", "json")),
        path=str(raw.get("path", "userdata.json")),
        key=str(raw.get("key", "default")),
    )
    if storage.backend not in ("json", "database"):
        raise ValueError(
            f"storage.backend must be 'json' or 'database', got {storage.backend!r}"
        )
    return storage


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def parse_config(raw: dict) -> AscendConfig:
    """Build an :class:`AscendConfig` from an already-parsed mapping.

    Raises
    ------
    KeyError
        If a required key is missing.
    ValueError
        If a value is out of range.
    """
    verify_message_id = raw.get("verify_message_id")
    return AscendConfig(
        community_name=raw["community_name"],
        bot_prefix=raw.get("bot_prefix", "!"),
        guild_id=int(raw["guild_id"]),
        welcome_channel_id=int(raw["welcome_channel_id"]),
        level_channel_id=int(raw["level_channel_id"]),
        verified_role_id=int(raw["verified_role_id"]),
        verify_emoji=str(raw.get("verify_emoji", "✅")),
        verify_message_id=int(verify_message_id) if verify_message_id else None,
        xp=_parse_xp(raw.get("xp")),
        reward_tiers=_parse_tiers(raw.get("reward_tiers")),
        storage=_parse_storage(raw.get("storage")),
        api_port=int(raw.get("api_port", 8000)),
    )


def load_config(path: str | Path | None = None) -> AscendConfig:
    """Read *path* and return an :class:`AscendConfig` instance.

    Parameters
    ----------
    path:
        Filesystem path to the YAML configuration file.  Defaults to
        ``$ASCEND_CONFIG`` or ``config.yaml`` in the working directory.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    """
    config_path = Path(path or os.getenv("ASCEND_CONFIG", DEFAULT_CONFIG_PATH))
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    return parse_config(raw)
