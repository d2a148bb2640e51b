"""Health routes — liveness, readiness and working-set stats."""

from session_cache.infrastructure import database as db_module
from session_cache.infrastructure.database import DatabaseSessionManager


async def test_liveness(client):
    resp = await client.get("/api/v1/health/")
    assert resp.status_code == 200
    assert resp.json() == {"status": "healthy", "service": "msm-session-cache"}


async def test_readiness_without_database(client, monkeypatch):
    monkeypatch.setattr(db_module, "db_manager", None)

    resp = await client.get("/api/v1/health/ready")

    assert resp.status_code == 503
    assert resp.json()["reason"] == "database_unavailable"


async def test_readiness_with_database(client, monkeypatch):
    manager = DatabaseSessionManager("sqlite+aiosqlite:///:memory:")
    monkeypatch.setattr(db_module, "db_manager", manager)
    try:
        resp = await client.get("/api/v1/health/ready")
    finally:
        await manager.close()

    assert resp.status_code == 200
    assert resp.json()["checks"]["database"] == "healthy"


async def test_session_stats(client):
    await client.get("/api/v1/session")

    resp = await client.get("/api/v1/health/sessions")

    assert resp.status_code == 200
    assert resp.json() == {
        "active": 1,
        "cache_lifetime_seconds": 60,
        "gc_interval_hours": 1,
        "max_age_seconds": 3600,
        "scheduled": False,
    }
