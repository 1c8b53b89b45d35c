"""Tests for export API endpoints.

Seeds in-memory DB with habit logs, tests:
- GET /api/export?format=csv → valid CSV with one row per log
- GET /api/export?format=json → rows plus date range
- GET /api/export/metadata → column definitions present
- Date range filtering works
"""

import csv
import io
import pytest
from datetime import date
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api.export import router
from app.core.database import get_db
from app.core.security import get_current_user
from app.schemas.habits import HabitCreate, HabitLogCreate
from app.services.habits import create_habit, log_habit


def _make_test_app(session, user):
    app = FastAPI()
    app.include_router(router)

    async def override_get_db():
        yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = lambda: user
    return app


async def _seed(session, user):
    habit = await create_habit(
        session, user.id, HabitCreate(title="Read", category="learning"), today=date(2025, 1, 1)
    )
    for day, status in ((date(2025, 1, 27), "missed"), (date(2025, 1, 28), "completed")):
        await log_habit(
            session, user.id, HabitLogCreate(habit_id=habit.id, date=day, status=status), fire_triggers=False
        )
    await session.commit()
    return habit


class TestExport:

    @pytest.mark.asyncio
    async def test_csv_export(self, async_session, user):
        await _seed(async_session, user)
        app = _make_test_app(async_session, user)
        with TestClient(app) as client:
            resp = client.get("/api/export", params={"format": "csv"})

        assert resp.status_code == 200
        assert "text/csv" in resp.headers["content-type"]
        rows = list(csv.DictReader(io.StringIO(resp.text)))
        assert [r["date"] for r in rows] == ["2025-01-27", "2025-01-28"]
        assert rows[1]["habit_title"] == "Read"
        assert rows[1]["category"] == "learning"
        assert rows[1]["status"] == "completed"

    @pytest.mark.asyncio
    async def test_json_export_with_range(self, async_session, user):
        await _seed(async_session, user)
        app = _make_test_app(async_session, user)
        with TestClient(app) as client:
            resp = client.get("/api/export", params={"format": "json", "start": "2025-01-28", "end": "2025-01-28"})

        body = resp.json()
        assert body["count"] == 1
        assert body["data"][0]["streak"] == 1
        assert body["date_range"] == {"start": "2025-01-28", "end": "2025-01-28"}

    @pytest.mark.asyncio
    async def test_only_own_logs_are_exported(self, async_session, user, other_user):
        await _seed(async_session, user)
        app = _make_test_app(async_session, other_user)
        with TestClient(app) as client:
            resp = client.get("/api/export", params={"format": "json"})
        assert resp.json()["count"] == 0

    @pytest.mark.asyncio
    async def test_unknown_format_rejected(self, async_session, user):
        app = _make_test_app(async_session, user)
        with TestClient(app) as client:
            resp = client.get("/api/export", params={"format": "xml"})
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_metadata(self, async_session, user):
        app = _make_test_app(async_session, user)
        with TestClient(app) as client:
            resp = client.get("/api/export/metadata")

        body = resp.json()
        assert "date" in body["columns"]
        assert body["columns"]["status"]["unit"] == "completed/partial/missed/skipped"
        assert body["formats"] == ["csv", "json"]
