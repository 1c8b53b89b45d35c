"""Habit, habit-log and garden statistics API endpoints."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import get_current_user
from app.models.user import User
from app.schemas.habits import (
    HabitCreate,
    HabitLogCreate,
    HabitLogResponse,
    HabitResponse,
    HabitUpdate,
)
from app.services import habits as habit_service
from app.services.habit_analytics import get_garden_stats, get_habit_analytics

router = APIRouter(prefix="/api/habits", tags=["habits"])


@router.post("", response_model=HabitResponse, status_code=201)
async def create_habit(
    data: HabitCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await habit_service.create_habit(db, user.id, data)


@router.get("", response_model=list[HabitResponse])
async def list_habits(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    """Active habits, newest first."""
    return await habit_service.list_habits(db, user.id)


@router.post("/log", response_model=HabitLogResponse)
async def log_habit(
    data: HabitLogCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Record a day's outcome for a habit. Re-logging a date overwrites it."""
    return await habit_service.log_habit(db, user.id, data)


@router.get("/today", response_model=list[HabitLogResponse])
async def get_today_logs(
    day: Optional[date] = Query(None, alias="date"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await habit_service.get_today_logs(db, user.id, day)


@router.get("/calendar")
async def get_calendar(
    year: Optional[int] = Query(None, ge=1970, le=9999),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Per-day log counts for a year (defaults to the current year)."""
    return await habit_service.habit_calendar(db, user.id, year or date.today().year)


@router.get("/stats")
async def get_stats(
    day: Optional[date] = Query(None, alias="date"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Garden-wide statistics, cached per user."""
    return await get_garden_stats(db, user.id, day)


@router.get("/{habit_id}", response_model=HabitResponse)
async def get_habit(habit_id: int, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await habit_service.get_habit(db, habit_id, user.id)


@router.patch("/{habit_id}", response_model=HabitResponse)
async def update_habit(
    habit_id: int,
    data: HabitUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await habit_service.update_habit(db, habit_id, user.id, data)


@router.delete("/{habit_id}", status_code=204)
async def delete_habit(habit_id: int, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    await habit_service.delete_habit(db, habit_id, user.id)


@router.get("/{habit_id}/logs", response_model=list[HabitLogResponse])
async def get_habit_logs(
    habit_id: int,
    start: Optional[date] = None,
    end: Optional[date] = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await habit_service.get_habit_logs(db, habit_id, user.id, start, end)


@router.get("/{habit_id}/analytics")
async def get_analytics(
    habit_id: int,
    day: Optional[date] = Query(None, alias="date"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await get_habit_analytics(db, habit_id, user.id, day)
