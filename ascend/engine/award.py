"""
ascend.engine.award — XP Award Pipeline
========================================

The single place XP is granted.  No Discord I/O and no storage I/O:
every method here runs to completion synchronously, so two listeners
can never interleave inside one award on the asyncio loop.

Pipeline (per award):
  fetch-or-create record → validate amount → add XP → re-derive level
  → emit LevelUp / RoleSync effects → mark store dirty

Callers dispatch ``AwardResult.effects`` through
:func:`ascend.services.announcement_service.dispatch_award` and then
``await store.save()``.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ascend.constants import MS_PER_MINUTE, now_ms
from ascend.engine.cooldown import CooldownTracker
from ascend.engine.events import Effect, LevelUp, RoleSync, XPSource
from ascend.engine.progress import ProgressRecord
from ascend.engine.rewards import tiers_crossed
from ascend.engine.voice_sessions import VoiceSessionTracker
from ascend.errors import InvalidAwardError

if TYPE_CHECKING:
    from ascend.config import RewardTier, XPRates
    from ascend.services.progress_store import UserProgressStore

logger = logging.getLogger(__name__)

__all__ = ["AwardResult", "XPAwardPipeline"]


# ---------------------------------------------------------------------------
# AwardResult — output of the pipeline
# ---------------------------------------------------------------------------
@dataclass
class AwardResult:
    """What one award did to one user's record."""

    user_id: int
    source: XPSource
    amount: int
    record: ProgressRecord
    old_level: int
    new_level: int
    effects: tuple[Effect, ...] = field(default_factory=tuple)

    @property
    def leveled_up(self) -> bool:
        return self.new_level > self.old_level


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------
class XPAwardPipeline:
    """Applies XP awards to the progress store.

    Parameters
    ----------
    store:
        The shared :class:`UserProgressStore`.
    rates:
        XP amounts and windows from config.
    tiers:
        The reward-tier table, sorted by level.
    rng:
        Source of randomness for message XP (injectable for tests).
    """

    def __init__(
        self,
        store: UserProgressStore,
        rates: XPRates,
        tiers: tuple[RewardTier, ...] = (),
        *,
        cooldowns: CooldownTracker | None = None,
        voice: VoiceSessionTracker | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.store = store
        self.rates = rates
        self.tiers = tiers
        self.cooldowns = cooldowns or CooldownTracker(rates.message_cooldown_ms)
        self.voice = voice or VoiceSessionTracker()
        self._rng = rng or random.Random()

    # -------------------------------------------------------------------
    # Core award
    # -------------------------------------------------------------------
    def award(
        self,
        user_id: int,
        amount: int,
        source: XPSource,
        *,
        now: int | None = None,
    ) -> AwardResult:
        """Grant *amount* XP to *user_id* and return the result.

        Raises
        ------
        InvalidAwardError
            If *amount* is not positive.  Nothing is mutated.
        """
        if isinstance(amount, bool) or amount <= 0:
            raise InvalidAwardError(user_id, amount)

        record = self.store.get_or_create(user_id, now)
        old_level = record.add_xp(amount)
        new_level = record.level
        self.store.mark_dirty()

        effects: list[Effect] = []
        if new_level > old_level:
            effects.append(LevelUp(
                user_id=user_id,
                old_level=old_level,
                new_level=new_level,
                total_xp=record.xp,
                levels_crossed=tuple(range(old_level + 1, new_level + 1)),
                milestones=tuple(tiers_crossed(old_level, new_level, self.tiers)),
            ))
            effects.append(RoleSync(user_id=user_id, level=new_level))
            logger.info(
                "User %s leveled up %d → %d (%s, +%d XP)",
                user_id, old_level, new_level, source, amount,
            )

        return AwardResult(
            user_id=user_id,
            source=source,
            amount=amount,
            record=record,
            old_level=old_level,
            new_level=new_level,
            effects=tuple(effects),
        )

    def touch(self, user_id: int, now: int | None = None) -> ProgressRecord:
        """Ensure a record exists without granting XP."""
        return self.store.get_or_create(user_id, now)

    # -------------------------------------------------------------------
    # Source-specific entry points
    # -------------------------------------------------------------------
    def award_message(self, user_id: int, now: int | None = None) -> AwardResult | None:
        """Cooldown-gated message XP.  ``None`` when suppressed."""
        now = now_ms() if now is None else now
        if not self.cooldowns.is_eligible(user_id, now):
            logger.debug(
                "Message cooldown active for %s (%d ms remaining)",
                user_id, self.cooldowns.remaining_ms(user_id, now),
            )
            return None
        self.cooldowns.record_award(user_id, now)

        amount = self._rng.randint(self.rates.message_min, self.rates.message_max)
        result = self.award(user_id, amount, XPSource.MESSAGE, now=now)
        result.record.total_messages += 1
        return result

    def award_reaction_given(self, user_id: int) -> AwardResult:
        return self.award(user_id, self.rates.reaction_given, XPSource.REACTION_GIVEN)

    def award_reaction_received(self, user_id: int) -> AwardResult:
        return self.award(user_id, self.rates.reaction_received, XPSource.REACTION_RECEIVED)

    def award_verification(self, user_id: int) -> AwardResult:
        return self.award(user_id, self.rates.verification_bonus, XPSource.VERIFICATION)

    def award_daily(self, user_id: int, now: int | None = None) -> AwardResult:
        """Stamp the daily-bonus time and grant the bonus."""
        now = now_ms() if now is None else now
        record = self.store.get_or_create(user_id, now)
        record.last_daily_bonus_at = now
        return self.award(user_id, self.rates.daily_bonus, XPSource.DAILY, now=now)

    def voice_join(self, user_id: int, now: int | None = None) -> None:
        now = now_ms() if now is None else now
        self.store.get_or_create(user_id, now)
        self.voice.on_join(user_id, now)

    def voice_leave(self, user_id: int, now: int | None = None) -> AwardResult | None:
        """Close the voice session and award whole minutes.

        Returns ``None`` when there was no open session or it lasted less
        than a minute; the remainder of a partial minute is discarded.
        """
        now = now_ms() if now is None else now
        duration = self.voice.on_leave(user_id, now)
        if duration is None:
            logger.debug("Voice leave for %s without an open session", user_id)
            return None

        minutes = duration // MS_PER_MINUTE
        if minutes < 1:
            logger.debug("Voice session for %s under a minute (%d ms)", user_id, duration)
            return None

        result = self.award(
            user_id, minutes * self.rates.voice_per_minute, XPSource.VOICE, now=now
        )
        result.record.voice_time_ms += duration
        return result
