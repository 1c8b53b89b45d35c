"""Analysis API endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import get_current_user
from app.models.user import User
from app.schemas.analysis import CorrelationResult, InsightResult
from app.services.analysis import habit_health_correlations, habit_health_insights

router = APIRouter(prefix="/api/analysis", tags=["analysis"])


@router.get("/habits/{habit_id}/correlations", response_model=list[CorrelationResult])
async def get_correlations(
    habit_id: int,
    min_days: int = Query(5, ge=2),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Correlate a habit's completion with each health metric.

    Args:
        habit_id: The habit to correlate against
        min_days: Minimum days of paired data required per metric
    """
    correlations = await habit_health_correlations(db, user.id, habit_id, min_days=min_days)
    return [CorrelationResult(**c) for c in correlations]


@router.get("/habits/{habit_id}/insights", response_model=list[InsightResult])
async def get_insights(
    habit_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get plain-English insights for a habit."""
    insights = await habit_health_insights(db, user.id, habit_id)
    return [InsightResult(**i) for i in insights]
