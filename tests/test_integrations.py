"""Tests for calendar and task integrations and the shared sync bookkeeping."""

import pytest
from datetime import datetime, timedelta

from app.core.exceptions import BadRequestError, ConflictError, NotFoundError
from app.models.integration import CalendarIntegration, TaskIntegration
from app.schemas.integrations import (
    CalendarEventCreate,
    CalendarIntegrationCreate,
    ExternalTask,
    TaskIntegrationCreate,
)
from app.services import integrations

NOW = datetime(2025, 3, 1, 9, 0)


async def _calendar(session, user, **fields):
    data = CalendarIntegrationCreate(
        provider=fields.pop("provider", "google"),
        external_calendar_id="primary",
        calendar_name="Personal",
        **fields,
    )
    return await integrations.create_calendar(session, user.id, data)


async def _project(session, user, **fields):
    data = TaskIntegrationCreate(
        provider=fields.pop("provider", "todoist"),
        external_project_id="p-1",
        project_name="Inbox",
        **fields,
    )
    return await integrations.create_task_integration(session, user.id, data)


class TestCalendar:

    @pytest.mark.asyncio
    async def test_create_merges_default_settings(self, async_session, user):
        cal = await _calendar(async_session, user, sync_settings={"event_duration": 45})
        assert cal.sync_status == "active"
        assert cal.sync_settings["event_duration"] == 45
        assert cal.sync_settings["buffer_time"] == 5
        assert cal.meta == {"sync_errors": [], "event_count": 0}

    @pytest.mark.asyncio
    async def test_duplicate_provider_conflicts(self, async_session, user):
        await _calendar(async_session, user)
        with pytest.raises(ConflictError):
            await _calendar(async_session, user)

    @pytest.mark.asyncio
    async def test_other_users_calendar_not_found(self, async_session, user, other_user):
        cal = await _calendar(async_session, user)
        with pytest.raises(NotFoundError):
            await integrations.sync_calendar(async_session, cal.id, other_user.id)

    @pytest.mark.asyncio
    async def test_event_uses_default_duration(self, async_session, user):
        cal = await _calendar(async_session, user)
        event = await integrations.create_calendar_event(
            async_session, cal.id, user.id, CalendarEventCreate(title="Run", start_time=NOW, habit_id=3)
        )
        assert event["end_time"] == (NOW + timedelta(minutes=30)).isoformat()
        assert event["event_type"] == "habit_reminder"
        assert event["calendar_id"] == "primary"
        assert event["id"].startswith("evt_")
        assert cal.meta["event_count"] == 1

    @pytest.mark.asyncio
    async def test_no_event_when_auto_create_off(self, async_session, user):
        cal = await _calendar(async_session, user, sync_settings={"auto_create_events": False})
        event = await integrations.create_calendar_event(
            async_session, cal.id, user.id, CalendarEventCreate(title="Run", start_time=NOW)
        )
        assert event is None


class TestSync:

    @pytest.mark.asyncio
    async def test_successful_sync_schedules_next_day(self, async_session, user):
        cal = await _calendar(async_session, user)
        await integrations.run_sync(async_session, cal, now=NOW)

        assert cal.last_sync_at == NOW
        assert cal.next_sync_at == NOW + timedelta(hours=24)
        status = integrations.sync_status(cal)
        assert status["status"] == "active"
        assert status["error_count"] == 0

    @pytest.mark.asyncio
    async def test_expired_credentials_mark_error(self, async_session, user):
        cal = await _calendar(async_session, user, credentials={"expires_at": "2025-02-01T00:00:00"})
        with pytest.raises(BadRequestError):
            await integrations.run_sync(async_session, cal, now=NOW)

        assert cal.sync_status == "error"
        assert len(cal.meta["sync_errors"]) == 1
        assert integrations.sync_status(cal)["error_count"] == 1

    @pytest.mark.asyncio
    async def test_repeated_failures_back_off_and_keep_recent_errors(self, async_session, user):
        cal = await _calendar(async_session, user, credentials={"expires_at": "2025-02-01T00:00:00"})
        for hour in range(12):
            with pytest.raises(BadRequestError):
                await integrations.run_sync(async_session, cal, now=NOW + timedelta(hours=hour))

        last_run = NOW + timedelta(hours=11)
        assert len(cal.meta["sync_errors"]) == integrations.MAX_SYNC_ERRORS
        assert cal.meta["sync_errors"][-1].startswith(last_run.isoformat())
        assert cal.next_sync_at == last_run + integrations.SYNC_RETRY_INTERVAL
        assert await integrations.due_for_sync(async_session, CalendarIntegration, now=last_run) == []

    @pytest.mark.asyncio
    async def test_malformed_expiry_is_bad_request(self, async_session, user):
        cal = await _calendar(async_session, user, credentials={"expires_at": "next tuesday"})
        with pytest.raises(BadRequestError) as exc_info:
            await integrations.run_sync(async_session, cal, now=NOW)

        assert exc_info.value.message_key == "integration.credentials_invalid"
        assert cal.sync_status == "error"

    @pytest.mark.asyncio
    async def test_offset_expiry_compared_in_utc(self, async_session, user):
        # 10:30+02:00 is 08:30 UTC, before NOW
        cal = await _calendar(async_session, user, credentials={"expires_at": "2025-03-01T10:30:00+02:00"})
        with pytest.raises(BadRequestError):
            await integrations.run_sync(async_session, cal, now=NOW)

    @pytest.mark.asyncio
    async def test_due_for_sync(self, async_session, user):
        never = await _calendar(async_session, user)
        later = await _calendar(async_session, user, provider="outlook")
        later.next_sync_at = NOW + timedelta(hours=1)
        paused = await _calendar(async_session, user, provider="apple")
        paused.sync_status = "paused"
        await async_session.flush()

        due = await integrations.due_for_sync(async_session, CalendarIntegration, now=NOW)
        assert [i.id for i in due] == [never.id]


class TestTasks:

    @pytest.mark.asyncio
    async def test_habit_creation_disabled_by_default(self, async_session, user):
        project = await _project(async_session, user)
        with pytest.raises(BadRequestError):
            await integrations.create_habit_from_task(
                async_session, project.id, user.id, ExternalTask(title="Floss")
            )

    @pytest.mark.asyncio
    async def test_habit_from_task(self, async_session, user):
        project = await _project(async_session, user, sync_settings={"auto_create_habits": True})
        habit = await integrations.create_habit_from_task(
            async_session, project.id, user.id, ExternalTask(title="Floss", priority="high", tags=["teeth"])
        )

        assert habit.title == "Floss"
        assert habit.category == "productivity"
        assert habit.description == "Tags: imported, teeth"
        assert project.meta["task_count"] == 1
        assert project.meta["habits_created"] == 1

    @pytest.mark.asyncio
    async def test_low_priority_task_rejected(self, async_session, user):
        project = await _project(async_session, user, sync_settings={"auto_create_habits": True})
        with pytest.raises(BadRequestError):
            await integrations.create_habit_from_task(
                async_session, project.id, user.id, ExternalTask(title="Someday", priority="low")
            )

    @pytest.mark.asyncio
    async def test_stats_and_overview(self, async_session, user):
        project = await _project(async_session, user, sync_settings={"auto_create_habits": True})
        await _calendar(async_session, user)
        await integrations.create_habit_from_task(
            async_session, project.id, user.id, ExternalTask(title="Floss")
        )

        stats = await integrations.task_stats(async_session, user.id)
        assert stats["total_integrations"] == 1
        assert stats["total_tasks"] == 1

        summary = await integrations.overview(async_session, user.id)
        assert summary["calendar"]["total"] == 1
        assert summary["tasks"]["active"] == 1
        assert summary["smart_home"]["total"] == 0
        assert summary["total_integrations"] == 2

    @pytest.mark.asyncio
    async def test_update_merges_sync_settings(self, async_session, user):
        project = await _project(async_session, user)
        updated = await integrations.update_integration(
            async_session, TaskIntegration, project.id, user.id, {"sync_settings": {"sync_comments": True}}
        )
        assert updated.sync_settings["sync_comments"] is True
        assert updated.sync_settings["sync_tasks"] is True
