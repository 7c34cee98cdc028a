"""
ascend.api.routes.public — Read-only public endpoints
======================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel

from ascend.api.deps import get_store
from ascend.constants import LEADERBOARD_SIZE, MS_PER_MINUTE, level_progress
from ascend.engine.progress import ProgressRecord
from ascend.services.progress_store import UserProgressStore

router = APIRouter(tags=["public"])


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------
class UserProgress(BaseModel):
    id: str
    xp: int
    level: int
    xp_into_level: int
    xp_level_span: int
    total_messages: int
    voice_minutes: int
    joined_at: int
    rank: int | None = None


class LeaderboardEntry(BaseModel):
    rank: int
    id: str
    level: int
    xp: int


def _user_model(user_id: int, record: ProgressRecord, rank: int | None) -> UserProgress:
    into_level, span = level_progress(record.xp)
    return UserProgress(
        id=str(user_id),
        xp=record.xp,
        level=record.level,
        xp_into_level=into_level,
        xp_level_span=span,
        total_messages=record.total_messages,
        voice_minutes=record.voice_time_ms // MS_PER_MINUTE,
        joined_at=record.joined_at,
        rank=rank,
    )


# ---------------------------------------------------------------------------
# GET /leaderboard
# ---------------------------------------------------------------------------
@router.get("/leaderboard", response_model=list[LeaderboardEntry])
def get_leaderboard(
    limit: int = Query(LEADERBOARD_SIZE, ge=1, le=100),
    store: UserProgressStore = Depends(get_store),
):
    """Highest-XP members, descending."""
    return [
        LeaderboardEntry(rank=i, id=str(uid), level=record.level, xp=record.xp)
        for i, (uid, record) in enumerate(store.top(limit), start=1)
    ]


# ---------------------------------------------------------------------------
# GET /users/{user_id}
# ---------------------------------------------------------------------------
@router.get("/users/{user_id}", response_model=UserProgress)
def get_user(user_id: int, store: UserProgressStore = Depends(get_store)):
    """One member's progress.  404 if they have never been seen."""
    record = store.get(user_id)
    if record is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "User not found")
    return _user_model(user_id, record, store.rank_of(user_id))
