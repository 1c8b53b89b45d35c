"""Tests for habit API endpoints."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api.habits import router
from app.core.database import get_db
from app.core.errors import register_exception_handlers
from app.core.security import get_current_user


def _make_test_app(session, user):
    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(router)

    async def override_get_db():
        yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = lambda: user
    return app


class TestHabitEndpoints:

    @pytest.mark.asyncio
    async def test_create_and_list(self, async_session, user):
        app = _make_test_app(async_session, user)
        with TestClient(app) as client:
            created = client.post("/api/habits", json={
                "title": "Meditate",
                "category": "mindfulness",
                "flower_type": "lily",
            })
            listed = client.get("/api/habits")

        assert created.status_code == 201
        body = created.json()
        assert body["category"] == "mindfulness"
        assert body["flower_type"] == "lily"
        assert body["health_points"] == 100
        assert body["growth_label"] == "seed"
        assert body["needs_water"] is True
        assert [h["id"] for h in listed.json()] == [body["id"]]

    @pytest.mark.asyncio
    async def test_invalid_category_rejected(self, async_session, user):
        app = _make_test_app(async_session, user)
        with TestClient(app) as client:
            resp = client.post("/api/habits", json={"title": "Nap", "category": "sleeping"})
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_null_for_required_field_rejected(self, async_session, user):
        app = _make_test_app(async_session, user)
        with TestClient(app) as client:
            habit = client.post("/api/habits", json={"title": "Journal", "end_date": "2025-12-31"}).json()
            nulled_title = client.patch(f"/api/habits/{habit['id']}", json={"title": None})
            nulled_target = client.patch(f"/api/habits/{habit['id']}", json={"target_count": None})
            cleared_end = client.patch(f"/api/habits/{habit['id']}", json={"end_date": None})

        assert nulled_title.status_code == 422
        assert nulled_target.status_code == 422
        assert cleared_end.status_code == 200
        assert cleared_end.json()["title"] == "Journal"
        assert cleared_end.json()["end_date"] is None

    @pytest.mark.asyncio
    async def test_log_and_read_back(self, async_session, user):
        app = _make_test_app(async_session, user)
        with TestClient(app) as client:
            habit = client.post("/api/habits", json={"title": "Stretch"}).json()
            logged = client.post("/api/habits/log", json={
                "habit_id": habit["id"],
                "date": "2025-03-01",
                "status": "completed",
                "metadata": {"mood": "great"},
            })
            refreshed = client.get(f"/api/habits/{habit['id']}")
            logs = client.get(f"/api/habits/{habit['id']}/logs", params={"start": "2025-03-01", "end": "2025-03-01"})

        assert logged.status_code == 200
        assert logged.json()["streak"] == 1
        assert logged.json()["is_perfect_day"] is True
        assert logged.json()["metadata"] == {"mood": "great"}
        assert refreshed.json()["water_level"] == 20
        assert refreshed.json()["current_streak"] == 1
        assert len(logs.json()) == 1

    @pytest.mark.asyncio
    async def test_missing_habit_is_404_with_error_body(self, async_session, user):
        app = _make_test_app(async_session, user)
        with TestClient(app) as client:
            resp = client.get("/api/habits/999")

        assert resp.status_code == 404
        body = resp.json()
        assert body["status_code"] == 404
        assert body["error"] == "Not Found"
        assert body["path"] == "/api/habits/999"
        assert body["language"] == "en"

    @pytest.mark.asyncio
    async def test_update_and_delete(self, async_session, user):
        app = _make_test_app(async_session, user)
        with TestClient(app) as client:
            habit = client.post("/api/habits", json={"title": "Journal"}).json()
            updated = client.patch(f"/api/habits/{habit['id']}", json={"title": "Evening journal"})
            deleted = client.delete(f"/api/habits/{habit['id']}")
            missing = client.get(f"/api/habits/{habit['id']}")

        assert updated.json()["title"] == "Evening journal"
        assert deleted.status_code == 204
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_stats_calendar_and_analytics(self, async_session, user):
        app = _make_test_app(async_session, user)
        with TestClient(app) as client:
            habit = client.post("/api/habits", json={"title": "Water plants"}).json()
            client.post("/api/habits/log", json={"habit_id": habit["id"], "date": "2025-03-05"})
            stats = client.get("/api/habits/stats", params={"date": "2025-03-05"})
            calendar = client.get("/api/habits/calendar", params={"year": 2025})
            analytics = client.get(f"/api/habits/{habit['id']}/analytics", params={"date": "2025-03-05"})
            today = client.get("/api/habits/today", params={"date": "2025-03-05"})

        assert stats.json()["completed_today"] == 1
        assert stats.json()["garden_mood"]["mood_level"] == "excellent"
        assert len(calendar.json()) == 365
        assert analytics.json()["progress"]["completed_days"] == 1
        assert len(today.json()) == 1
