"""Tests for the monitoring, cache and queue administration endpoints."""

import pytest
from unittest.mock import patch
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api.performance import router
from app.core.config import Settings
from app.core.database import get_db
from app.core.errors import register_exception_handlers
from app.core.security import get_current_user
from app.services import monitoring, queue
from app.services.cache import CacheService


def _make_test_app(session, user=None):
    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(router)

    async def override_get_db():
        yield session

    app.dependency_overrides[get_db] = override_get_db
    if user is not None:
        app.dependency_overrides[get_current_user] = lambda: user
    return app


@pytest.fixture(autouse=True)
def clean_state():
    yield
    queue._paused.clear()
    monitoring.clear_history()


class TestAccess:

    @pytest.mark.asyncio
    async def test_requires_login(self, async_session):
        with TestClient(_make_test_app(async_session)) as client:
            resp = client.get("/api/performance/system")
        assert resp.status_code == 401


class TestMonitoringEndpoints:

    @pytest.mark.asyncio
    async def test_health_and_metrics(self, async_session, user):
        with TestClient(_make_test_app(async_session, user)) as client:
            health = client.get("/api/performance/health")
            client.get("/api/performance/metrics")
            history = client.get("/api/performance/metrics/history", params={"limit": 5})

        assert health.status_code == 200
        assert len(health.json()["checks"]) == 4
        assert len(history.json()) == 1

    @pytest.mark.asyncio
    async def test_disabled_monitoring_is_503(self, async_session, user):
        with patch.object(monitoring, "get_settings", return_value=Settings(monitoring_enabled=False)):
            with TestClient(_make_test_app(async_session, user)) as client:
                resp = client.get("/api/performance/metrics")

        assert resp.status_code == 503
        assert resp.json()["message"] == "Monitoring is disabled"


class TestCacheEndpoints:

    @pytest.mark.asyncio
    async def test_keys_and_delete(self, async_session, user):
        await CacheService(async_session).mset({"garden-stats:1": {}, "session:1": {}})

        with TestClient(_make_test_app(async_session, user)) as client:
            listed = client.get("/api/performance/cache/keys", params={"pattern": "garden-stats:*"})
            deleted = client.request("DELETE", "/api/performance/cache/keys", params={"pattern": "garden-stats:*"})
            stats = client.get("/api/performance/cache/stats")

        assert listed.json() == {"pattern": "garden-stats:*", "keys": ["garden-stats:1"], "count": 1}
        assert deleted.json()["deleted"] == 1
        assert stats.json()["total_keys"] == 1


class TestQueueEndpoints:

    @pytest.mark.asyncio
    async def test_enqueue_and_inspect(self, async_session, user):
        with TestClient(_make_test_app(async_session, user)) as client:
            created = client.post("/api/performance/queues/notifications/jobs", json={
                "name": "send-email",
                "data": {"to": "a@b.co"},
                "max_attempts": 5,
            })
            job_id = created.json()["id"]
            fetched = client.get(f"/api/performance/jobs/{job_id}")
            listed = client.get("/api/performance/queues/notifications/jobs", params={"status": "waiting"})
            stats = client.get("/api/performance/queues/notifications/stats")

        assert created.status_code == 201
        assert created.json()["status"] == "waiting"
        assert fetched.json()["max_attempts"] == 5
        assert [j["id"] for j in listed.json()] == [job_id]
        assert stats.json()["waiting"] == 1

    @pytest.mark.asyncio
    async def test_unknown_queue_is_400(self, async_session, user):
        with TestClient(_make_test_app(async_session, user)) as client:
            resp = client.post("/api/performance/queues/emails/jobs", json={"name": "send-email"})
        assert resp.status_code == 400
        assert resp.json()["message"] == "Unknown queue: emails"

    @pytest.mark.asyncio
    async def test_pause_resume(self, async_session, user):
        with TestClient(_make_test_app(async_session, user)) as client:
            paused = client.post("/api/performance/queues/analytics/pause")
            stats = client.get("/api/performance/queues/analytics/stats")
            resumed = client.post("/api/performance/queues/analytics/resume")

        assert paused.json() == {"queue": "analytics", "paused": True}
        assert stats.json()["paused"] is True
        assert resumed.json()["paused"] is False

    @pytest.mark.asyncio
    async def test_remove_job(self, async_session, user):
        with TestClient(_make_test_app(async_session, user)) as client:
            job_id = client.post("/api/performance/queues/analytics/jobs", json={"name": "system-analytics"}).json()["id"]
            removed = client.delete(f"/api/performance/jobs/{job_id}")
            missing = client.get(f"/api/performance/jobs/{job_id}")

        assert removed.status_code == 204
        assert missing.status_code == 404
