"""Per-habit analytics and whole-garden statistics."""

import calendar
import logging
from collections import defaultdict
from datetime import date, timedelta
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.habit import Habit, HabitLog
from app.services import garden
from app.services.cache import CacheService, garden_stats_key
from app.services.habits import get_habit, list_habits

logger = logging.getLogger(__name__)

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
DONE_STATUSES = ("completed", "partial")


def week_start(day: date) -> date:
    """Sunday on or before ``day``."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def shift_month(year: int, month: int, offset: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


def _done(logs) -> int:
    return sum(1 for log in logs if log.status in DONE_STATUSES)


def habit_progress(logs: list) -> dict:
    total = len(logs)
    completed = sum(1 for log in logs if log.status == "completed")
    return {
        "total_days": total,
        "completed_days": completed,
        "partial_days": sum(1 for log in logs if log.status == "partial"),
        "missed_days": sum(1 for log in logs if log.status == "missed"),
        "skipped_days": sum(1 for log in logs if log.status == "skipped"),
        "completion_rate": garden.completion_rate(completed, total),
    }


def weekly_progress(logs: list, today: date, weeks: int = 4) -> list[dict]:
    series = []
    current_week = week_start(today)
    for i in range(weeks - 1, -1, -1):
        start = current_week - timedelta(days=7 * i)
        end = start + timedelta(days=6)
        done = _done(log for log in logs if start <= log.date <= end)
        series.append({
            "week": f"{start.isoformat()} - {end.isoformat()}",
            "week_start": start.isoformat(),
            "completed_days": done,
            "total_days": 7,
            "completion_rate": garden.completion_rate(done, 7),
        })
    return series


def monthly_progress(logs: list, today: date, months: int = 6) -> list[dict]:
    series = []
    for i in range(months - 1, -1, -1):
        year, month = shift_month(today.year, today.month, -i)
        start, end = month_bounds(year, month)
        done = _done(log for log in logs if start <= log.date <= end)
        series.append({
            "month": f"{calendar.month_name[month]} {year}",
            "completed_days": done,
            "total_days": end.day,
            "completion_rate": garden.completion_rate(done, end.day),
        })
    return series


def day_of_week_stats(logs: list) -> dict:
    """Best and worst weekday by completion rate.

    Days are scanned Sunday first and only a strictly better rate replaces
    the current pick, so ties go to the earlier day.
    """
    totals = [0] * 7
    done = [0] * 7
    for log in logs:
        index = (log.date.weekday() + 1) % 7
        totals[index] += 1
        if log.status in DONE_STATUSES:
            done[index] += 1

    best_day, worst_day = 0, 0
    best_rate, worst_rate = 0.0, 100.0
    for index in range(7):
        if totals[index] == 0:
            continue
        rate = done[index] / totals[index] * 100
        if rate > best_rate:
            best_rate, best_day = rate, index
        if rate < worst_rate:
            worst_rate, worst_day = rate, index

    return {
        "best_day_of_week": DAY_NAMES[best_day],
        "worst_day_of_week": DAY_NAMES[worst_day],
        "best_day_rate": round(best_rate),
        "worst_day_rate": round(worst_rate),
    }


async def _logs_for_user(session: AsyncSession, user_id: int, start: Optional[date] = None) -> list[HabitLog]:
    query = select(HabitLog).where(HabitLog.user_id == user_id)
    if start:
        query = query.where(HabitLog.date >= start)
    result = await session.execute(query.order_by(HabitLog.date))
    return list(result.scalars().all())


async def get_habit_analytics(
    session: AsyncSession,
    habit_id: int,
    user_id: int,
    today: Optional[date] = None,
) -> dict:
    today = today or date.today()
    habit = await get_habit(session, habit_id, user_id)
    result = await session.execute(
        select(HabitLog).where(HabitLog.habit_id == habit.id).order_by(HabitLog.date)
    )
    logs = list(result.scalars().all())

    if not logs:
        return {
            "habit_id": habit.id,
            "habit_title": habit.title,
            "progress": habit_progress([]),
            "streak": {"current_streak": 0, "longest_streak": 0, "streak_start_date": None},
            "weekly_progress": [],
            "monthly_progress": [],
            "best_day_of_week": "N/A",
            "worst_day_of_week": "N/A",
            "best_day_rate": 0,
            "worst_day_rate": 0,
        }

    streaks = garden.compute_streaks(logs, garden.streak_gap_days(habit.frequency, habit.custom_schedule))
    return {
        "habit_id": habit.id,
        "habit_title": habit.title,
        "progress": habit_progress(logs),
        "streak": {
            "current_streak": streaks.current,
            "longest_streak": streaks.longest,
            "streak_start_date": streaks.start_date.isoformat() if streaks.start_date else None,
        },
        "weekly_progress": weekly_progress(logs, today),
        "monthly_progress": monthly_progress(logs, today),
        **day_of_week_stats(logs),
    }


def _empty_garden_stats() -> dict:
    return {
        "total_habits": 0,
        "completed_today": 0,
        "partial_today": 0,
        "missed_today": 0,
        "today_completion_rate": 0,
        "week_completion_rate": 0,
        "month_completion_rate": 0,
        "total_active_streak": 0,
        "longest_streak_ever": 0,
        "garden_mood": garden.garden_mood(0, 0, 0),
        "habits_by_category": [],
        "top_habits": [],
        "needs_attention": [],
        "weekly_trend": [],
        "monthly_trend": [],
    }


def _habit_summary(habit: Habit, rate: int) -> dict:
    return {
        "id": habit.id,
        "title": habit.title,
        "category": habit.category,
        "flower_type": habit.flower_type,
        "current_streak": habit.current_streak,
        "completion_rate": rate,
    }


def _range_rate(logs: list, habit_count: int, start: date, end: date) -> tuple[int, int]:
    days = (end - start).days + 1
    done = _done(log for log in logs if start <= log.date <= end)
    return garden.completion_rate(done, habit_count * days), done


def compute_garden_stats(habits: list[Habit], logs: list[HabitLog], today: date) -> dict:
    """Garden statistics from already-loaded habits and logs."""
    if not habits:
        return _empty_garden_stats()

    habit_ids = {h.id for h in habits}
    logs = [log for log in logs if log.habit_id in habit_ids]
    logs_by_habit: dict[int, list[HabitLog]] = defaultdict(list)
    for log in logs:
        logs_by_habit[log.habit_id].append(log)

    today_logs = [log for log in logs if log.date == today]
    completed_today = sum(1 for log in today_logs if log.status == "completed")
    partial_today = sum(1 for log in today_logs if log.status == "partial")

    this_week = week_start(today)
    week_rate, _ = _range_rate(logs, len(habits), this_week, this_week + timedelta(days=6))
    month_rate, _ = _range_rate(logs, len(habits), *month_bounds(today.year, today.month))

    rates = {
        h.id: habit_progress(logs_by_habit[h.id])["completion_rate"] for h in habits
    }

    categories: dict[str, list[Habit]] = defaultdict(list)
    for habit in habits:
        categories[habit.category].append(habit)
    habits_by_category = [
        {
            "category": category,
            "count": len(members),
            "completion_rate": round(sum(rates[h.id] for h in members) / len(members)),
            "total_streak": sum(h.current_streak for h in members),
        }
        for category, members in sorted(categories.items())
    ]

    ranked = sorted(habits, key=lambda h: (rates[h.id], h.current_streak), reverse=True)
    top_habits = [_habit_summary(h, rates[h.id]) for h in ranked[:3]]

    needs_attention = []
    for habit in sorted(habits, key=lambda h: (rates[h.id], h.current_streak)):
        if rates[habit.id] >= 50 or len(needs_attention) >= 3:
            continue
        completed_dates = [log.date for log in logs_by_habit[habit.id] if log.status == "completed"]
        summary = _habit_summary(habit, rates[habit.id])
        summary["days_since_last_completed"] = (
            (today - max(completed_dates)).days if completed_dates else None
        )
        summary["health_points"] = habit.health_points
        needs_attention.append(summary)

    weekly_trend = []
    for i in range(3, -1, -1):
        start = this_week - timedelta(days=7 * i)
        rate, done = _range_rate(logs, len(habits), start, start + timedelta(days=6))
        weekly_trend.append({
            "week_start": start.isoformat(),
            "completion_rate": rate,
            "total_habits": len(habits),
            "completed_logs": done,
        })

    monthly_trend = []
    for i in range(5, -1, -1):
        year, month = shift_month(today.year, today.month, -i)
        rate, done = _range_rate(logs, len(habits), *month_bounds(year, month))
        monthly_trend.append({
            "month": f"{calendar.month_name[month]} {year}",
            "completion_rate": rate,
            "total_habits": len(habits),
            "completed_logs": done,
        })

    return {
        "total_habits": len(habits),
        "completed_today": completed_today,
        "partial_today": partial_today,
        "missed_today": len(habits) - completed_today - partial_today,
        "today_completion_rate": garden.completion_rate(completed_today + partial_today, len(habits)),
        "week_completion_rate": week_rate,
        "month_completion_rate": month_rate,
        "total_active_streak": sum(h.current_streak for h in habits),
        "longest_streak_ever": max(h.longest_streak for h in habits),
        "garden_mood": garden.garden_mood(len(habits), completed_today, partial_today),
        "habits_by_category": habits_by_category,
        "top_habits": top_habits,
        "needs_attention": needs_attention,
        "weekly_trend": weekly_trend,
        "monthly_trend": monthly_trend,
    }


async def get_garden_stats(
    session: AsyncSession,
    user_id: int,
    today: Optional[date] = None,
    use_cache: bool = True,
) -> dict:
    """Garden statistics for a user, served from cache when fresh."""
    today = today or date.today()
    cache = CacheService(session)
    key = garden_stats_key(user_id)

    if use_cache:
        cached = await cache.get(key)
        if cached is not None and cached.get("as_of") == today.isoformat():
            return cached["stats"]

    habits = await list_habits(session, user_id)
    # Six months of history covers the longest trend window
    history_start = date(*shift_month(today.year, today.month, -5), 1)
    logs = await _logs_for_user(session, user_id, start=min(history_start, week_start(today) - timedelta(days=21)))
    stats = compute_garden_stats(habits, logs, today)

    await cache.set(key, {"as_of": today.isoformat(), "stats": stats})
    return stats
