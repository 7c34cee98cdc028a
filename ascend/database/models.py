"""
ascend.database.models — SQLAlchemy 2.0 Data Models
====================================================

Tables:
- progress_snapshots — the full user → progress mapping as one JSON
  document per key, replaced wholesale on every save
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all Ascend ORM models."""


# ---------------------------------------------------------------------------
# Progress snapshots — one row per bot deployment
# ---------------------------------------------------------------------------
class ProgressSnapshot(Base):
    __tablename__ = "progress_snapshots"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    payload: Mapped[str] = mapped_column(Text, nullable=False, default="{}")
    user_count: Mapped[int] = mapped_column(default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<ProgressSnapshot key={self.key!r} users={self.user_count}>"
