"""
tests/test_voice_sessions.py — Voice session tracking & voice XP
=================================================================
"""

from __future__ import annotations

from ascend.engine.events import XPSource
from ascend.engine.voice_sessions import VoiceSessionTracker


class TestVoiceSessionTracker:
    def test_leave_returns_duration_and_closes(self):
        tracker = VoiceSessionTracker()
        tracker.on_join(1, 1_000)
        assert tracker.on_leave(1, 61_000) == 60_000
        assert not tracker.is_open(1)

    def test_leave_without_join_is_none(self):
        assert VoiceSessionTracker().on_leave(1, 5_000) is None

    def test_second_join_restarts_session(self):
        tracker = VoiceSessionTracker()
        tracker.on_join(1, 0)
        tracker.on_join(1, 100_000)
        assert tracker.on_leave(1, 160_000) == 60_000
        assert len(tracker) == 0


class TestVoiceAwards:
    def test_two_and_a_half_minutes_awards_two_minutes(self, pipeline, store, rates):
        pipeline.voice_join(7, now=0)
        result = pipeline.voice_leave(7, now=150_000)

        assert result is not None
        assert result.source == XPSource.VOICE
        assert result.amount == 2 * rates.voice_per_minute
        record = store.get(7)
        assert record.xp == 2 * rates.voice_per_minute
        assert record.voice_time_ms == 150_000

    def test_leave_without_join_is_noop(self, pipeline, store):
        assert pipeline.voice_leave(7, now=150_000) is None
        assert store.get(7) is None

    def test_sub_minute_session_awards_nothing(self, pipeline, store):
        pipeline.voice_join(7, now=0)
        assert pipeline.voice_leave(7, now=59_999) is None
        record = store.get(7)
        assert record.xp == 0
        assert record.voice_time_ms == 0
        # Not retried later either
        assert pipeline.voice_leave(7, now=500_000) is None

    def test_join_creates_record(self, pipeline, store):
        pipeline.voice_join(7, now=1234)
        assert store.get(7).joined_at == 1234

    def test_long_session_can_cross_levels(self, pipeline, rates):
        pipeline.voice_join(7, now=0)
        # 90 minutes * 10 XP = 900 XP → level 3
        result = pipeline.voice_leave(7, now=90 * 60_000)
        assert result.new_level == 3
        assert result.leveled_up
