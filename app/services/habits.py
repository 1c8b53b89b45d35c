"""Habit CRUD, habit logging and garden-state bookkeeping."""

import logging
from datetime import date, timedelta
from typing import Optional

from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.models.habit import Habit, HabitLog
from app.schemas.habits import HabitCreate, HabitUpdate, HabitLogCreate
from app.services import garden
from app.services.cache import CacheService, garden_stats_key

logger = logging.getLogger(__name__)

# Updating any of these changes how the log history is scored
_SCORING_FIELDS = {"frequency", "target_count", "start_date", "end_date", "custom_schedule"}


async def create_habit(
    session: AsyncSession,
    user_id: int,
    data: HabitCreate,
    today: Optional[date] = None,
) -> Habit:
    fields = data.model_dump(exclude_none=True)
    fields["start_date"] = fields.get("start_date") or today or date.today()
    habit = Habit(
        user_id=user_id,
        health_points=garden.MAX_POINTS,
        water_level=0,
        growth_stage=0,
        **fields,
    )
    session.add(habit)
    await session.flush()
    await session.refresh(habit)
    await CacheService(session).delete(garden_stats_key(user_id))
    logger.info(f"User {user_id} planted habit {habit.id} ({habit.title})")
    return habit


async def list_habits(session: AsyncSession, user_id: int, include_inactive: bool = False) -> list[Habit]:
    """Habits for a user, newest first."""
    query = select(Habit).where(Habit.user_id == user_id)
    if not include_inactive:
        query = query.where(Habit.is_active.is_(True))
    result = await session.execute(query.order_by(Habit.created_at.desc(), Habit.id.desc()))
    return list(result.scalars().all())


async def get_habit(session: AsyncSession, habit_id: int, user_id: int) -> Habit:
    result = await session.execute(
        select(Habit).where(Habit.id == habit_id, Habit.user_id == user_id)
    )
    habit = result.scalar_one_or_none()
    if habit is None:
        raise NotFoundError(f"Habit {habit_id} not found", message_key="habit.not_found")
    return habit


async def update_habit(session: AsyncSession, habit_id: int, user_id: int, data: HabitUpdate) -> Habit:
    habit = await get_habit(session, habit_id, user_id)
    changes = data.model_dump(exclude_unset=True)
    for key, value in changes.items():
        setattr(habit, key, value)
    await session.flush()

    if _SCORING_FIELDS & changes.keys():
        await recompute_garden(session, habit)

    await CacheService(session).delete(garden_stats_key(user_id))
    await session.refresh(habit)
    return habit


async def delete_habit(session: AsyncSession, habit_id: int, user_id: int) -> None:
    habit = await get_habit(session, habit_id, user_id)
    await session.execute(delete(HabitLog).where(HabitLog.habit_id == habit.id))
    await session.delete(habit)
    await session.flush()
    await CacheService(session).delete(garden_stats_key(user_id))
    logger.info(f"User {user_id} removed habit {habit_id}")


async def recompute_garden(session: AsyncSession, habit: Habit) -> list[HabitLog]:
    """Replay the full log history onto the habit and each log's streak."""
    result = await session.execute(
        select(HabitLog).where(HabitLog.habit_id == habit.id).order_by(HabitLog.date)
    )
    logs = list(result.scalars().all())

    streaks = garden.compute_streaks(logs, garden.streak_gap_days(habit.frequency, habit.custom_schedule))
    state = garden.replay_garden(log.status for log in logs)

    for log in logs:
        log.streak = streaks.per_log.get(log.date, 0)

    habit.current_streak = streaks.current
    habit.longest_streak = streaks.longest
    habit.total_completions = state.total_completions
    habit.health_points = state.health_points
    habit.water_level = state.water_level
    habit.growth_stage = garden.growth_percentage(
        state.total_completions, habit.target_count, habit.start_date, habit.end_date
    )
    await session.flush()
    return logs


async def log_habit(
    session: AsyncSession,
    user_id: int,
    data: HabitLogCreate,
    fire_triggers: bool = True,
) -> HabitLog:
    """Record (or overwrite) one day's outcome and re-score the habit."""
    habit = await get_habit(session, data.habit_id, user_id)
    target = data.target_count or habit.target_count

    result = await session.execute(
        select(HabitLog).where(
            HabitLog.user_id == user_id,
            HabitLog.habit_id == habit.id,
            HabitLog.date == data.date,
        )
    )
    log = result.scalar_one_or_none()
    if log is None:
        log = HabitLog(user_id=user_id, habit_id=habit.id, date=data.date)
        session.add(log)

    status = data.status
    log.status = status
    log.completed_count = data.completed_count
    log.target_count = target
    log.notes = data.notes
    log.meta = data.metadata
    log.is_perfect_day = garden.is_perfect_day(status, data.completed_count, target)
    await session.flush()

    await recompute_garden(session, habit)
    await CacheService(session).delete(garden_stats_key(user_id))
    await session.refresh(log)

    logger.info(
        f"Habit {habit.id} logged {status} for {data.date} "
        f"(streak {log.streak}, health {habit.health_points}, water {habit.water_level})"
    )

    # goals and smart_home depend on this module through the task integration
    from app.services.goals import sync_habit_goals

    await sync_habit_goals(session, user_id, habit.id, data.date, fire_triggers=fire_triggers)

    if fire_triggers and status in ("completed", "missed"):
        from app.services.smart_home import fire_habit_event

        await fire_habit_event(session, user_id, habit, log)

    return log


async def get_habit_logs(
    session: AsyncSession,
    habit_id: int,
    user_id: int,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> list[HabitLog]:
    """Logs for one habit, newest first. Bounds are inclusive."""
    await get_habit(session, habit_id, user_id)
    query = select(HabitLog).where(HabitLog.habit_id == habit_id, HabitLog.user_id == user_id)
    if start:
        query = query.where(HabitLog.date >= start)
    if end:
        query = query.where(HabitLog.date <= end)
    result = await session.execute(query.order_by(HabitLog.date.desc()))
    return list(result.scalars().all())


async def get_today_logs(session: AsyncSession, user_id: int, today: Optional[date] = None) -> list[HabitLog]:
    today = today or date.today()
    result = await session.execute(
        select(HabitLog).where(HabitLog.user_id == user_id, HabitLog.date == today)
    )
    return list(result.scalars().all())


async def habit_calendar(session: AsyncSession, user_id: int, year: int) -> list[dict]:
    """One entry per day of the year with log counts per status, for the heatmap."""
    start_date = date(year, 1, 1)
    end_date = date(year, 12, 31)

    result = await session.execute(
        select(HabitLog.date, HabitLog.status, func.count(HabitLog.id))
        .where(
            HabitLog.user_id == user_id,
            HabitLog.date >= start_date,
            HabitLog.date <= end_date,
        )
        .group_by(HabitLog.date, HabitLog.status)
    )
    counts: dict[date, dict[str, int]] = {}
    for log_date, status, count in result.all():
        counts.setdefault(log_date, {})[status] = count

    entries = []
    current = start_date
    while current <= end_date:
        day = counts.get(current, {})
        entries.append({
            "date": current.isoformat(),
            "completed": day.get("completed", 0),
            "partial": day.get("partial", 0),
            "missed": day.get("missed", 0),
        })
        current += timedelta(days=1)
    return entries
