"""
ascend.api.deps — FastAPI dependency injection
===============================================
"""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, HTTPException, status

from ascend.config import AscendConfig, load_config
from ascend.errors import PersistenceError
from ascend.services.progress_store import (
    SnapshotBackend,
    UserProgressStore,
    create_backend,
)


@lru_cache(maxsize=1)
def get_config() -> AscendConfig:
    return load_config()


@lru_cache(maxsize=1)
def get_backend() -> SnapshotBackend:
    return create_backend(get_config().storage)


def get_store(backend: SnapshotBackend = Depends(get_backend)) -> UserProgressStore:
    """A read-only view of the latest persisted snapshot."""
    store = UserProgressStore(backend)
    try:
        store.load()
    except PersistenceError:
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, "Progress data unavailable")
    return store
