"""
tests/test_api_routes.py — FastAPI Route Integration Tests
============================================================
Read-only public endpoints served from the persisted snapshot.  The
store dependency is overridden so no config file or database is needed.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from ascend.api.deps import get_backend, get_store
from ascend.errors import PersistenceError
from ascend.services.progress_store import UserProgressStore

from conftest import MemoryBackend

SNAPSHOT = {
    "1": {"xp": 50, "total_messages": 3, "voice_time_ms": 125_000, "joined_at": 1_000},
    "2": {"xp": 2500, "total_messages": 90},
    "3": {"xp": 650},
}


class BrokenBackend(MemoryBackend):
    def read(self):
        raise PersistenceError("corrupt")


@pytest.fixture
def app():
    from ascend.api.main import app
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """TestClient whose store is loaded from an in-memory snapshot."""
    def _store():
        store = UserProgressStore(MemoryBackend(initial=SNAPSHOT))
        store.load()
        return store

    app.dependency_overrides[get_store] = _store
    return TestClient(app, raise_server_exceptions=False)


# ===========================================================================
# Health endpoint
# ===========================================================================
class TestHealthEndpoint:
    def test_health_returns_ok(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}


# ===========================================================================
# Leaderboard
# ===========================================================================
class TestLeaderboard:
    def test_sorted_by_xp(self, client):
        resp = client.get("/api/leaderboard")
        assert resp.status_code == 200
        body = resp.json()
        assert [e["id"] for e in body] == ["2", "3", "1"]
        assert [e["rank"] for e in body] == [1, 2, 3]
        assert body[0]["level"] == 5

    def test_limit(self, client):
        assert len(client.get("/api/leaderboard?limit=2").json()) == 2

    def test_limit_out_of_range(self, client):
        assert client.get("/api/leaderboard?limit=0").status_code == 422
        assert client.get("/api/leaderboard?limit=101").status_code == 422


# ===========================================================================
# User lookup
# ===========================================================================
class TestUser:
    def test_known_user(self, client):
        resp = client.get("/api/users/1")
        assert resp.status_code == 200
        body = resp.json()
        assert body["id"] == "1"
        assert body["level"] == 0
        assert body["xp_into_level"] == 50
        assert body["xp_level_span"] == 100
        assert body["voice_minutes"] == 2
        assert body["rank"] == 3

    def test_unknown_user_404(self, client):
        assert client.get("/api/users/999").status_code == 404


# ===========================================================================
# Unreadable snapshot
# ===========================================================================
class TestUnavailable:
    def test_corrupt_snapshot_returns_503(self, app):
        app.dependency_overrides[get_backend] = lambda: BrokenBackend()
        client = TestClient(app, raise_server_exceptions=False)
        assert client.get("/api/leaderboard").status_code == 503
