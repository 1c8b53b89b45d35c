"""Health data API endpoints."""

from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import get_current_user
from app.models.user import User
from app.models.wearable import DataQuality, HealthDataType, WearableProvider
from app.schemas.common import to_naive_utc
from app.schemas.wearables import (
    HealthDataCreate,
    HealthDataPage,
    HealthDataQuery,
    HealthDataResponse,
    HealthDataUpdate,
)
from app.services import health_data

router = APIRouter(prefix="/api/health-data", tags=["health-data"])


@router.post("", response_model=HealthDataResponse, status_code=201)
async def create_entry(
    data: HealthDataCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await health_data.create(db, user.id, data)


@router.post("/bulk", response_model=list[HealthDataResponse], status_code=201)
async def bulk_create(
    items: list[HealthDataCreate],
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await health_data.bulk_create(db, user.id, items)


@router.get("", response_model=HealthDataPage)
async def find_all(
    type: Optional[HealthDataType] = None,
    types: Optional[list[HealthDataType]] = Query(None),
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    device_id: Optional[int] = None,
    provider: Optional[WearableProvider] = None,
    quality: Optional[DataQuality] = None,
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    order: Literal["asc", "desc"] = "desc",
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    query = HealthDataQuery(
        type=type,
        types=types,
        start_date=start_date,
        end_date=end_date,
        device_id=device_id,
        provider=provider,
        quality=quality,
        limit=limit,
        offset=offset,
        order=order,
    )
    return await health_data.find_all(db, user.id, query)


@router.get("/summary")
async def summary(
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await health_data.summary(db, user.id, to_naive_utc(start_date), to_naive_utc(end_date))


@router.get("/latest", response_model=list[HealthDataResponse])
async def latest(
    type: Optional[HealthDataType] = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """The 10 most recent readings, optionally of one type."""
    return await health_data.latest(db, user.id, type.value if type else None)


@router.get("/insights")
async def insights(
    days: int = Query(7, ge=1, le=365),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await health_data.insights(db, user.id, days)


@router.get("/trends/{data_type}")
async def trends(
    data_type: HealthDataType,
    days: int = Query(30, ge=1, le=365),
    group_by: Literal["day", "week", "month"] = "day",
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await health_data.trends(db, user.id, data_type.value, days, group_by)


@router.get("/type/{data_type}", response_model=list[HealthDataResponse])
async def by_type(
    data_type: HealthDataType,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    limit: int = Query(100, ge=1, le=1000),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await health_data.by_type(
        db, user.id, data_type.value, to_naive_utc(start_date), to_naive_utc(end_date), limit
    )


@router.get("/{entry_id}", response_model=HealthDataResponse)
async def find_one(entry_id: int, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await health_data.find_one(db, entry_id, user.id)


@router.patch("/{entry_id}", response_model=HealthDataResponse)
async def update_entry(
    entry_id: int,
    data: HealthDataUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await health_data.update(db, entry_id, user.id, data)


@router.delete("/{entry_id}", status_code=204)
async def remove_entry(entry_id: int, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    await health_data.remove(db, entry_id, user.id)


@router.post("/{entry_id}/process", response_model=HealthDataResponse)
async def process_entry(entry_id: int, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await health_data.process(db, entry_id, user.id)
