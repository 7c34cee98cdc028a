"""
ascend.services.progress_store — In-memory progress map + snapshot persistence
===============================================================================

The in-memory map is authoritative.  Storage holds one document with the
whole ``user_id → ProgressRecord`` mapping, rewritten wholesale on every
save.  Two backends share that contract:

* :class:`JsonFileBackend` — ``userdata.json`` written atomically
  (temp file in the same directory, fsync, ``os.replace``).
* :class:`DatabaseBackend` — one ``progress_snapshots`` row replaced in a
  single SQLAlchemy transaction.

Write ordering:
    ``save()`` holds an ``asyncio.Lock`` across snapshot + write, and takes
    the snapshot *inside* the lock.  A later save therefore always writes a
    snapshot at least as new as an earlier one, while listeners keep
    mutating records during the threaded write.  Each save records the
    mutation revision it captured; anything newer stays dirty for the next
    save.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol

from sqlalchemy.exc import SQLAlchemyError

from ascend.constants import now_ms
from ascend.database.engine import get_session, run_db
from ascend.database.models import ProgressSnapshot
from ascend.engine.progress import ProgressRecord
from ascend.errors import PersistenceError

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from ascend.config import StorageConfig

logger = logging.getLogger(__name__)

Payload = dict[str, dict[str, Any]]


# ---------------------------------------------------------------------------
# Backends
# ---------------------------------------------------------------------------
class SnapshotBackend(Protocol):
    """Reads and writes the full progress document."""

    def read(self) -> Payload | None: ...

    def write(self, payload: Payload) -> None: ...


class JsonFileBackend:
    """Stores the snapshot as a JSON file, replaced atomically."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"<JsonFileBackend path={str(self.path)!r}>"

    def read(self) -> Payload | None:
        if not self.path.exists():
            return None
        try:
            with open(self.path, encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise PersistenceError(f"Cannot read {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise PersistenceError(f"{self.path} does not contain a JSON object")
        return data

    def write(self, payload: Payload) -> None:
        directory = self.path.parent
        tmp_path: str | None = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            # Same directory so os.replace never crosses a filesystem boundary.
            fd, tmp_path = tempfile.mkstemp(
                dir=directory, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(payload, fh, indent=2)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as exc:
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except FileNotFoundError:
                    pass
            raise PersistenceError(f"Cannot write {self.path}: {exc}") from exc


class DatabaseBackend:
    """Stores the snapshot as one JSON text row keyed by *key*."""

    def __init__(self, engine: Engine, key: str = "default") -> None:
        self.engine = engine
        self.key = key

    def __repr__(self) -> str:
        return f"<DatabaseBackend key={self.key!r}>"

    def read(self) -> Payload | None:
        try:
            with get_session(self.engine) as session:
                row = session.get(ProgressSnapshot, self.key)
                raw = row.payload if row is not None else None
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Cannot read snapshot {self.key!r}: {exc}") from exc
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise PersistenceError(f"Snapshot {self.key!r} is not valid JSON") from exc
        if not isinstance(data, dict):
            raise PersistenceError(f"Snapshot {self.key!r} is not a JSON object")
        return data

    def write(self, payload: Payload) -> None:
        body = json.dumps(payload)
        try:
            with get_session(self.engine) as session:
                row = session.get(ProgressSnapshot, self.key)
                if row is None:
                    row = ProgressSnapshot(key=self.key)
                    session.add(row)
                row.payload = body
                row.user_count = len(payload)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Cannot write snapshot {self.key!r}: {exc}") from exc


def create_backend(storage: StorageConfig, engine: Engine | None = None) -> SnapshotBackend:
    """Build the backend named by ``storage.backend``."""
    if storage.backend == "database":
        if engine is None:
            from ascend.database.engine import create_db_engine, init_db

            engine = create_db_engine()
            init_db(engine)
        return DatabaseBackend(engine, storage.key)
    return JsonFileBackend(storage.path)


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------
class UserProgressStore:
    """Owns every :class:`ProgressRecord` for the guild.

    Parameters
    ----------
    backend:
        Where snapshots are read from and written to.
    """

    def __init__(self, backend: SnapshotBackend) -> None:
        self.backend = backend
        self._records: dict[int, ProgressRecord] = {}
        self._revision = 0
        self._persisted_revision = 0
        self._write_lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._records

    # -- loading ----------------------------------------------------------
    def load(self) -> int:
        """Replace the in-memory map with the stored snapshot.

        A missing snapshot starts an empty map.  An unreadable one raises
        :class:`PersistenceError` so it is never silently overwritten.
        Returns the number of records loaded.
        """
        data = self.backend.read()
        records: dict[int, ProgressRecord] = {}
        for raw_id, raw_record in (data or {}).items():
            try:
                records[int(raw_id)] = ProgressRecord.from_dict(raw_record)
            except (TypeError, ValueError, AttributeError) as exc:
                raise PersistenceError(
                    f"Malformed progress record for user {raw_id!r}: {exc}"
                ) from exc
        self._records = records
        self._revision = self._persisted_revision = 0
        logger.info("Loaded %d progress records from %r", len(records), self.backend)
        return len(records)

    # -- access -----------------------------------------------------------
    def get(self, user_id: int) -> ProgressRecord | None:
        return self._records.get(user_id)

    def get_or_create(self, user_id: int, now: int | None = None) -> ProgressRecord:
        """Fetch *user_id*'s record, creating a zero-state one if needed."""
        record = self._records.get(user_id)
        if record is None:
            record = ProgressRecord(joined_at=now if now is not None else now_ms())
            self._records[user_id] = record
            self.mark_dirty()
            logger.debug("Created progress record for user %s", user_id)
        return record

    def user_ids(self) -> list[int]:
        """Snapshot of the known user ids (safe to iterate while mutating)."""
        return list(self._records)

    def top(self, limit: int) -> list[tuple[int, ProgressRecord]]:
        """Highest-XP users first; ties keep insertion order."""
        ranked = sorted(self._records.items(), key=lambda kv: kv[1].xp, reverse=True)
        return ranked[:limit]

    def rank_of(self, user_id: int) -> int | None:
        """1-based XP rank of *user_id*, or ``None`` if unknown."""
        record = self._records.get(user_id)
        if record is None:
            return None
        return 1 + sum(1 for r in self._records.values() if r.xp > record.xp)

    # -- persistence ------------------------------------------------------
    def mark_dirty(self) -> None:
        self._revision += 1

    @property
    def dirty(self) -> bool:
        return self._revision != self._persisted_revision

    def snapshot(self) -> Payload:
        """Serialize every record (JSON object keys are strings)."""
        return {str(uid): record.to_dict() for uid, record in self._records.items()}

    async def save(self) -> bool:
        """Write the current state if anything changed since the last write.

        Returns ``False`` (after logging) when the backend fails; the
        in-memory state stays dirty and the next save retries.
        """
        async with self._write_lock:
            revision = self._revision
            if revision == self._persisted_revision:
                return True
            payload = self.snapshot()
            try:
                await run_db(self.backend.write, payload)
            except PersistenceError:
                logger.exception(
                    "Progress snapshot write failed (revision %d)", revision,
                    extra={"backend": repr(self.backend)},
                )
                return False
            self._persisted_revision = max(self._persisted_revision, revision)
            logger.debug("Persisted %d records at revision %d", len(payload), revision)
            return True

    def flush(self) -> bool:
        """Synchronous save for shutdown paths with no running loop."""
        revision = self._revision
        if revision == self._persisted_revision:
            return True
        try:
            self.backend.write(self.snapshot())
        except PersistenceError:
            logger.exception("Final progress flush failed")
            return False
        self._persisted_revision = revision
        logger.info("Flushed %d progress records", len(self._records))
        return True
