"""Tests for the scheduled garden check and integration sync jobs."""

import pytest
from datetime import date, datetime, timedelta
from sqlalchemy import select

from app.models.habit import HabitLog
from app.models.integration import CalendarIntegration, TaskIntegration
from app.models.system import JobRecord
from app.schemas.habits import HabitCreate, HabitLogCreate
from app.services import queue
from app.services.habits import create_habit, log_habit
from app.services.scheduler import mark_missed_habits, run_garden_check, run_integration_sync

TODAY = date(2025, 3, 10)
YESTERDAY = TODAY - timedelta(days=1)


async def _plant(session, user, title, **fields):
    return await create_habit(session, user.id, HabitCreate(title=title, **fields), today=date(2025, 3, 1))


class TestMarkMissed:

    @pytest.mark.asyncio
    async def test_only_unlogged_active_daily_habits(self, async_session, user):
        forgotten = await _plant(async_session, user, "Forgotten")
        done = await _plant(async_session, user, "Done")
        weekly = await _plant(async_session, user, "Weekly", frequency="weekly")
        future = await create_habit(async_session, user.id, HabitCreate(title="Later"), today=TODAY)
        await log_habit(
            async_session, user.id, HabitLogCreate(habit_id=done.id, date=YESTERDAY), fire_triggers=False
        )

        assert await mark_missed_habits(async_session, YESTERDAY) == 1

        result = await async_session.execute(select(HabitLog).where(HabitLog.status == "missed"))
        missed = result.scalars().all()
        assert [log.habit_id for log in missed] == [forgotten.id]
        assert missed[0].completed_count == 0
        assert forgotten.health_points == 85
        assert weekly.id not in {log.habit_id for log in missed}
        assert future.id not in {log.habit_id for log in missed}

    @pytest.mark.asyncio
    async def test_garden_check_marks_yesterday(self, session_factory, async_session, user):
        habit = await _plant(async_session, user, "Forgotten")
        await async_session.commit()

        assert await run_garden_check(session_factory, today=TODAY) == 1

        async with session_factory() as session:
            result = await session.execute(select(HabitLog).where(HabitLog.habit_id == habit.id))
            logs = result.scalars().all()
        assert [(log.date, log.status) for log in logs] == [(YESTERDAY, "missed")]

    @pytest.mark.asyncio
    async def test_garden_check_is_idempotent(self, session_factory, async_session, user):
        await _plant(async_session, user, "Forgotten")
        await async_session.commit()

        await run_garden_check(session_factory, today=TODAY)
        assert await run_garden_check(session_factory, today=TODAY) == 0


class TestIntegrationSync:

    @pytest.mark.asyncio
    async def test_queues_one_job_per_user_and_kind(self, session_factory, async_session, user, other_user):
        now = datetime(2025, 3, 10, 12)
        async_session.add_all([
            CalendarIntegration(user_id=user.id, provider="google", external_calendar_id="a", calendar_name="A"),
            CalendarIntegration(user_id=user.id, provider="outlook", external_calendar_id="b", calendar_name="B"),
            TaskIntegration(
                user_id=other_user.id, provider="todoist", external_project_id="p", project_name="P",
                next_sync_at=now + timedelta(hours=2),
            ),
        ])
        await async_session.commit()

        assert await run_integration_sync(session_factory, now=now) == 1

        async with session_factory() as session:
            jobs = (await session.execute(select(JobRecord))).scalars().all()
        assert [(j.queue, j.name, j.data) for j in jobs] == [("data-sync", "sync-calendar", {"user_id": user.id})]

    @pytest.mark.asyncio
    async def test_failing_integration_not_requeued_every_cycle(self, session_factory, async_session, user):
        async_session.add(CalendarIntegration(
            user_id=user.id, provider="google", external_calendar_id="a", calendar_name="A",
            credentials={"expires_at": "2020-01-01T00:00:00"},
        ))
        await async_session.commit()

        for _ in range(3):
            await run_integration_sync(session_factory)
            async with session_factory() as session:
                result = await session.execute(select(JobRecord.id).where(JobRecord.status == "waiting"))
                waiting = result.scalars().all()
            for job_id in waiting:
                await queue.process_job(job_id, session_factory)

        async with session_factory() as session:
            jobs = (await session.execute(select(JobRecord))).scalars().all()
            calendar = (await session.execute(select(CalendarIntegration))).scalar_one()
        assert len(jobs) == 1
        assert jobs[0].result["failed_items"] == 1
        assert calendar.sync_status == "error"
        assert len(calendar.meta["sync_errors"]) == 1
        assert calendar.next_sync_at > datetime.utcnow()
