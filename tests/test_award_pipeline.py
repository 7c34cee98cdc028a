"""
tests/test_award_pipeline.py — XP award pipeline
=================================================
Validation, level derivation, effect emission, and the per-source entry
points.  No Discord objects are involved: the pipeline is pure state.
"""

from __future__ import annotations

import random

import pytest

from ascend.constants import level_for
from ascend.engine.award import XPAwardPipeline
from ascend.engine.events import LevelUp, RoleSync, XPSource
from ascend.errors import AscendError, InvalidAwardError


class TestValidation:
    @pytest.mark.parametrize("amount", [0, -1, -500])
    def test_non_positive_amount_raises(self, pipeline, store, amount):
        with pytest.raises(InvalidAwardError) as excinfo:
            pipeline.award(1, amount, XPSource.MESSAGE)
        assert excinfo.value.user_id == 1
        assert excinfo.value.amount == amount
        # Nothing mutated: no record, nothing to save
        assert store.get(1) is None
        assert not store.dirty

    def test_bool_amount_rejected(self, pipeline):
        with pytest.raises(InvalidAwardError):
            pipeline.award(1, True, XPSource.MESSAGE)

    def test_existing_record_untouched_on_rejection(self, pipeline, store):
        pipeline.award(1, 50, XPSource.MESSAGE)
        with pytest.raises(InvalidAwardError):
            pipeline.award(1, 0, XPSource.MESSAGE)
        assert store.get(1).xp == 50

    def test_error_hierarchy(self):
        err = InvalidAwardError(1, 0)
        assert isinstance(err, AscendError)
        assert isinstance(err, ValueError)


class TestLevelDerivation:
    def test_example_twenty_xp_stays_level_zero(self, pipeline, store):
        result = pipeline.award(1, 20, XPSource.MESSAGE)
        assert result.new_level == 0
        assert result.effects == ()
        assert store.get(1).level == 0

    def test_example_2500_xp_is_level_five(self, pipeline):
        result = pipeline.award(1, 2500, XPSource.MESSAGE)
        assert result.old_level == 0
        assert result.new_level == 5

    def test_level_invariant_holds_after_every_award(self, store, rates, tiers):
        pipeline = XPAwardPipeline(store, rates, tiers, rng=random.Random(7))
        rng = random.Random(99)
        for _ in range(500):
            uid = rng.randint(1, 5)
            result = pipeline.award(uid, rng.randint(1, 400), XPSource.MESSAGE)
            assert result.record.level == level_for(result.record.xp)
            assert result.new_level >= result.old_level

    def test_creates_record_with_join_time(self, pipeline, store):
        pipeline.award(1, 10, XPSource.MESSAGE, now=5_000)
        assert store.get(1).joined_at == 5_000


class TestEffects:
    def test_no_effects_without_level_change(self, pipeline):
        pipeline.award(1, 150, XPSource.MESSAGE)
        result = pipeline.award(1, 10, XPSource.MESSAGE)
        assert not result.leveled_up
        assert result.effects == ()

    def test_single_level_up(self, pipeline):
        result = pipeline.award(1, 100, XPSource.MESSAGE)
        level_up, role_sync = result.effects
        assert isinstance(level_up, LevelUp)
        assert (level_up.old_level, level_up.new_level) == (0, 1)
        assert level_up.total_xp == 100
        assert isinstance(role_sync, RoleSync)
        assert role_sync.level == 1

    def test_multi_level_jump_is_one_announcement(self, pipeline):
        result = pipeline.award(1, 2500, XPSource.MESSAGE)
        level_ups = [e for e in result.effects if isinstance(e, LevelUp)]
        assert len(level_ups) == 1
        assert level_ups[0].levels_crossed == (1, 2, 3, 4, 5)
        assert [t.level for t in level_ups[0].milestones] == [1, 2, 3, 5]

    def test_milestones_exclude_previous_level(self, pipeline):
        pipeline.award(1, 400, XPSource.MESSAGE)  # level 2
        result = pipeline.award(1, 500, XPSource.MESSAGE)  # 900 → level 3
        level_up = result.effects[0]
        assert [t.name for t in level_up.milestones] == ["Active Member"]


class TestMessageXP:
    def test_amount_within_configured_range(self, pipeline, rates):
        result = pipeline.award_message(1, now=0)
        assert rates.message_min <= result.amount <= rates.message_max
        assert result.source == XPSource.MESSAGE
        assert result.record.total_messages == 1

    def test_same_millisecond_second_message_suppressed(self, pipeline, store):
        first = pipeline.award_message(1, now=1_000)
        assert pipeline.award_message(1, now=1_000) is None
        record = store.get(1)
        assert record.xp == first.amount
        assert record.total_messages == 1

    def test_message_after_window_awarded(self, pipeline, store, rates):
        pipeline.award_message(1, now=0)
        assert pipeline.award_message(1, now=rates.message_cooldown_ms) is not None
        assert store.get(1).total_messages == 2

    def test_cooldown_is_per_user(self, pipeline):
        assert pipeline.award_message(1, now=0) is not None
        assert pipeline.award_message(2, now=0) is not None


class TestOtherSources:
    def test_reaction_amounts(self, pipeline, rates):
        given = pipeline.award_reaction_given(1)
        received = pipeline.award_reaction_received(2)
        assert given.amount == rates.reaction_given
        assert given.source == XPSource.REACTION_GIVEN
        assert received.amount == rates.reaction_received
        assert received.source == XPSource.REACTION_RECEIVED

    def test_verification_bonus_reaches_level_one(self, pipeline, rates):
        result = pipeline.award_verification(1)
        assert result.amount == rates.verification_bonus
        assert result.new_level == 1

    def test_daily_stamps_timestamp(self, pipeline, store, rates):
        result = pipeline.award_daily(1, now=123_456)
        assert result.amount == rates.daily_bonus
        assert store.get(1).last_daily_bonus_at == 123_456

    def test_touch_creates_without_xp(self, pipeline, store):
        record = pipeline.touch(1, now=42)
        assert record.xp == 0
        assert record.joined_at == 42
        assert store.dirty
