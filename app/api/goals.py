"""Goal, goal-progress and goal analytics API endpoints."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import get_current_user
from app.models.goal import GoalDifficulty, GoalPriority, GoalStatus, GoalType
from app.models.user import User
from app.schemas.goals import (
    GoalCreate,
    GoalProgressCreate,
    GoalProgressResponse,
    GoalResponse,
    GoalUpdate,
)
from app.services import goals as goal_service

router = APIRouter(prefix="/api/goals", tags=["goals"])


@router.post("", response_model=GoalResponse, status_code=201)
async def create_goal(
    data: GoalCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await goal_service.create_goal(db, user.id, data)


@router.get("", response_model=list[GoalResponse])
async def list_goals(
    status: Optional[GoalStatus] = None,
    type: Optional[GoalType] = None,
    priority: Optional[GoalPriority] = None,
    difficulty: Optional[GoalDifficulty] = None,
    category: Optional[str] = None,
    tag: Optional[str] = None,
    search: Optional[str] = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Goals, newest first. Every filter is optional."""
    return await goal_service.list_goals(
        db,
        user.id,
        status=status.value if status else None,
        type=type.value if type else None,
        priority=priority.value if priority else None,
        difficulty=difficulty.value if difficulty else None,
        category=category,
        tag=tag,
        search=search,
    )


@router.get("/analytics")
async def get_analytics(
    day: Optional[date] = Query(None, alias="date"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await goal_service.goal_analytics(db, user.id, day)


@router.get("/progress-report")
async def get_progress_report(
    day: Optional[date] = Query(None, alias="date"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Schedule standing and suggested next steps for each active goal."""
    return await goal_service.progress_report(db, user.id, day)


@router.get("/upcoming", response_model=list[GoalResponse])
async def get_upcoming(
    day: Optional[date] = Query(None, alias="date"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await goal_service.upcoming_goals(db, user.id, day)


@router.get("/overdue", response_model=list[GoalResponse])
async def get_overdue(
    day: Optional[date] = Query(None, alias="date"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await goal_service.overdue_goals(db, user.id, day)


@router.get("/milestones", response_model=list[GoalResponse])
async def get_with_milestones(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await goal_service.goals_with_milestones(db, user.id)


@router.get("/{goal_id}", response_model=GoalResponse)
async def get_goal(goal_id: int, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await goal_service.get_goal(db, goal_id, user.id)


@router.patch("/{goal_id}", response_model=GoalResponse)
async def update_goal(
    goal_id: int,
    data: GoalUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await goal_service.update_goal(db, goal_id, user.id, data)


@router.delete("/{goal_id}", status_code=204)
async def delete_goal(goal_id: int, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    await goal_service.delete_goal(db, goal_id, user.id)


@router.post("/{goal_id}/progress", response_model=GoalProgressResponse, status_code=201)
async def add_progress(
    goal_id: int,
    data: GoalProgressCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await goal_service.add_progress(db, goal_id, user.id, data)


@router.get("/{goal_id}/progress", response_model=list[GoalProgressResponse])
async def get_progress(goal_id: int, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await goal_service.progress_history(db, goal_id, user.id)


@router.post("/{goal_id}/complete", response_model=GoalResponse)
async def complete_goal(goal_id: int, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await goal_service.complete_goal(db, goal_id, user.id)


@router.post("/{goal_id}/pause", response_model=GoalResponse)
async def pause_goal(goal_id: int, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await goal_service.pause_goal(db, goal_id, user.id)


@router.post("/{goal_id}/resume", response_model=GoalResponse)
async def resume_goal(goal_id: int, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await goal_service.resume_goal(db, goal_id, user.id)
