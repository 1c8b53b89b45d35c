"""APScheduler setup for the daily garden check and integration sync."""

import logging
from datetime import date, datetime, timedelta
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import get_settings
from app.core.database import session_scope
from app.models.habit import Habit, HabitFrequency, HabitLog, LogStatus
from app.models.integration import CalendarIntegration, SmartHomeIntegration, TaskIntegration
from app.schemas.habits import HabitLogCreate
from app.services import queue
from app.services.habits import log_habit
from app.services.integrations import due_for_sync

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler: AsyncIOScheduler | None = None

SYNC_JOBS = (
    (CalendarIntegration, "sync-calendar"),
    (TaskIntegration, "sync-tasks"),
    (SmartHomeIntegration, "sync-smart-home"),
)


async def mark_missed_habits(session: AsyncSession, day: date) -> int:
    """Record a missed log for every active daily habit with no log on ``day``."""
    logged = select(HabitLog.habit_id).where(HabitLog.date == day)
    result = await session.execute(
        select(Habit).where(
            Habit.is_active.is_(True),
            Habit.frequency == HabitFrequency.DAILY.value,
            Habit.start_date <= day,
            Habit.id.not_in(logged),
        )
    )
    habits = list(result.scalars().all())

    for habit in habits:
        await log_habit(
            session,
            habit.user_id,
            HabitLogCreate(habit_id=habit.id, date=day, status=LogStatus.MISSED.value, completed_count=0),
        )
    return len(habits)


async def run_garden_check(
    session_factory: Optional[async_sessionmaker] = None,
    today: Optional[date] = None,
) -> int:
    """Daily job: mark yesterday's unlogged daily habits as missed."""
    yesterday = (today or date.today()) - timedelta(days=1)
    logger.info(f"Starting garden check for {yesterday}")
    try:
        async with session_scope(session_factory) as session:
            missed = await mark_missed_habits(session, yesterday)
    except Exception as e:
        logger.error(f"Garden check failed: {e}")
        return 0
    logger.info(f"Garden check completed: {missed} habit(s) marked missed")
    return missed


async def run_integration_sync(
    session_factory: Optional[async_sessionmaker] = None,
    now: Optional[datetime] = None,
) -> int:
    """Interval job: queue data-sync jobs for users with integrations due."""
    now = now or datetime.utcnow()
    queued = 0
    async with session_scope(session_factory) as session:
        for model, job_name in SYNC_JOBS:
            user_ids = sorted({i.user_id for i in await due_for_sync(session, model, now)})
            for user_id in user_ids:
                await queue.enqueue(session, "data-sync", job_name, {"user_id": user_id})
                queued += 1
    if queued:
        logger.info(f"Queued {queued} integration sync job(s)")
    return queued


def start_scheduler():
    """Start the APScheduler."""
    global scheduler

    if scheduler is not None:
        logger.warning("Scheduler already started")
        return

    settings = get_settings()
    scheduler = AsyncIOScheduler(timezone=settings.tz)

    scheduler.add_job(
        run_garden_check,
        CronTrigger(hour=settings.garden_check_hour, minute=0),
        id="garden_check",
        name="Daily garden check",
        replace_existing=True
    )
    scheduler.add_job(
        run_integration_sync,
        IntervalTrigger(minutes=settings.integration_sync_interval_minutes),
        id="integration_sync",
        name="Integration sync",
        replace_existing=True
    )

    scheduler.start()
    logger.info(
        f"Scheduler started - garden check at {settings.garden_check_hour}:00, "
        f"integration sync every {settings.integration_sync_interval_minutes} min"
    )


def stop_scheduler():
    """Stop the APScheduler."""
    global scheduler

    if scheduler is not None:
        scheduler.shutdown()
        scheduler = None
        logger.info("Scheduler stopped")
