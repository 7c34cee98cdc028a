"""
ascend.services.daily_bonus — Daily login bonus sweep
======================================================

One sweep grants the daily bonus to every known user whose last bonus is
more than 24 hours old and who is currently online.  The sweep walks a
snapshot of user ids taken when it starts; users created mid-sweep are
picked up by the next tick.

Presence is supplied by the caller as ``presence_of(user_id)``:

* ``None``  — member not resolvable (left the guild, not cached): skipped,
  nothing recorded, retried next tick.
* ``False`` — member is offline: skipped.
* ``True``  — member is online/idle/dnd: eligible.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from ascend.constants import MS_PER_DAY

if TYPE_CHECKING:
    from ascend.engine.award import AwardResult, XPAwardPipeline
    from ascend.services.progress_store import UserProgressStore

logger = logging.getLogger(__name__)

PresenceLookup = Callable[[int], bool | None]


def is_due(last_bonus_at: int, now: int) -> bool:
    """True when the last bonus is strictly older than 24 hours."""
    return last_bonus_at < now - MS_PER_DAY


def run_daily_sweep(
    store: UserProgressStore,
    pipeline: XPAwardPipeline,
    presence_of: PresenceLookup,
    now: int,
) -> list[AwardResult]:
    """Grant the daily bonus to every eligible user and return the results."""
    results: list[AwardResult] = []
    skipped_unresolved = 0

    for user_id in store.user_ids():
        record = store.get(user_id)
        if record is None or not is_due(record.last_daily_bonus_at, now):
            continue

        online = presence_of(user_id)
        if online is None:
            skipped_unresolved += 1
            continue
        if not online:
            continue

        results.append(pipeline.award_daily(user_id, now))

    if results or skipped_unresolved:
        logger.info(
            "Daily sweep: %d bonuses granted, %d members unresolved",
            len(results), skipped_unresolved,
        )
    return results
