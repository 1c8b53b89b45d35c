"""AI gardener API endpoints."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import get_current_user
from app.models.user import User
from app.services import ai

router = APIRouter(prefix="/api/ai", tags=["ai"])


@router.get("/garden-insights")
async def garden_insights(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await ai.garden_insights(db, user)


@router.get("/habits/{habit_id}/coaching")
async def habit_coaching(habit_id: int, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await ai.habit_coaching(db, habit_id, user)


@router.get("/weekly-report")
async def weekly_report(
    day: Optional[date] = Query(None, alias="date"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await ai.weekly_report(db, user, day)
