"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import random

import pytest
from sqlalchemy import Engine, create_engine
from sqlalchemy.pool import StaticPool

from ascend.config import AscendConfig, RewardTier, XPRates
from ascend.database.models import Base
from ascend.engine.award import XPAwardPipeline
from ascend.services.progress_store import UserProgressStore


class MemoryBackend:
    """Snapshot backend that keeps every written payload in a list."""

    def __init__(self, initial: dict | None = None) -> None:
        self.initial = initial
        self.writes: list[dict] = []

    def read(self):
        return self.initial

    def write(self, payload):
        self.writes.append(payload)

    @property
    def last(self) -> dict | None:
        return self.writes[-1] if self.writes else None


VERIFIED_ROLE_ID = 900
TIERS = (
    RewardTier(level=1, name="Verified", role_id=VERIFIED_ROLE_ID),
    RewardTier(level=2, name="Regular", role_id=902),
    RewardTier(level=3, name="Active Member", role_id=903),
    RewardTier(level=5, name="Trusted Member"),
    RewardTier(level=10, name="Veteran", role_id=910),
)


@pytest.fixture
def db_engine() -> Engine:
    """In-memory SQLite engine with all Ascend tables.

    StaticPool so the worker threads used by ``run_db`` share the same
    in-memory database.
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def rates() -> XPRates:
    return XPRates()


@pytest.fixture
def tiers() -> tuple[RewardTier, ...]:
    return TIERS


@pytest.fixture
def cfg(rates, tiers) -> AscendConfig:
    return AscendConfig(
        community_name="Test Guild",
        bot_prefix="!",
        guild_id=100,
        welcome_channel_id=200,
        level_channel_id=300,
        verified_role_id=VERIFIED_ROLE_ID,
        verify_emoji="✅",
        verify_message_id=4242,
        xp=rates,
        reward_tiers=tiers,
    )


@pytest.fixture
def backend() -> MemoryBackend:
    return MemoryBackend()


@pytest.fixture
def store(backend) -> UserProgressStore:
    return UserProgressStore(backend)


@pytest.fixture
def pipeline(store, rates, tiers) -> XPAwardPipeline:
    """Pipeline with a seeded RNG so message XP is reproducible."""
    return XPAwardPipeline(store, rates, tiers, rng=random.Random(1234))
