"""Flat habit-log rows for CSV/JSON export."""

import logging
from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.habit import Habit, HabitLog

logger = logging.getLogger(__name__)

# Column documentation, in export order
EXPORT_COLUMNS = {
    "date": {"description": "Day the log applies to", "unit": "YYYY-MM-DD"},
    "habit_id": {"description": "Habit identifier", "unit": "id"},
    "habit_title": {"description": "Habit title", "unit": "text"},
    "category": {"description": "Habit category", "unit": "text"},
    "status": {"description": "Log status", "unit": "completed/partial/missed/skipped"},
    "completed_count": {"description": "Times the habit was done that day", "unit": "count"},
    "target_count": {"description": "Daily target at the time of logging", "unit": "count"},
    "streak": {"description": "Streak length ending on this log", "unit": "days"},
    "is_perfect_day": {"description": "Completed and met the target", "unit": "boolean"},
    "notes": {"description": "Free-text notes", "unit": "text"},
}


async def export_rows(
    session: AsyncSession,
    user_id: int,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> list[dict]:
    """User's habit logs joined with their habit, oldest first."""
    stmt = (
        select(HabitLog, Habit.title, Habit.category)
        .join(Habit, Habit.id == HabitLog.habit_id)
        .where(HabitLog.user_id == user_id)
    )
    if start:
        stmt = stmt.where(HabitLog.date >= start)
    if end:
        stmt = stmt.where(HabitLog.date <= end)
    result = await session.execute(stmt.order_by(HabitLog.date, HabitLog.habit_id))

    rows = []
    for log, title, category in result.all():
        rows.append({
            "date": log.date.isoformat(),
            "habit_id": log.habit_id,
            "habit_title": title,
            "category": category,
            "status": log.status,
            "completed_count": log.completed_count,
            "target_count": log.target_count,
            "streak": log.streak,
            "is_perfect_day": log.is_perfect_day,
            "notes": log.notes,
        })

    logger.info(f"Built {len(rows)} export rows for user {user_id}")
    return rows
