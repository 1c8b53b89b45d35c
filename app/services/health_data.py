"""Health data readings: storage, querying, summaries and simple insights."""

import logging
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Any, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.models.wearable import HealthData, WearableDevice
from app.schemas.wearables import HealthDataCreate, HealthDataQuery, HealthDataUpdate

logger = logging.getLogger(__name__)


def numeric_value(value: Any) -> Optional[float]:
    """Numeric reading from a stored value, or None for structured data without one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, dict):
        inner = value.get("value")
        if isinstance(inner, (int, float)) and not isinstance(inner, bool):
            return float(inner)
    return None


def period_key(timestamp: datetime, group_by: str) -> str:
    if group_by == "week":
        year, week, _ = timestamp.isocalendar()
        return f"{year}-W{week:02d}"
    if group_by == "month":
        return timestamp.strftime("%Y-%m")
    return timestamp.date().isoformat()


def reading_insights(data_type: str, value: Optional[float]) -> list[str]:
    if value is None:
        return []
    insights = []
    if data_type == "steps":
        if value >= 10000:
            insights.append("Great job! You reached your daily step goal.")
        elif value >= 5000:
            insights.append("Good progress! Keep moving to reach your goal.")
    elif data_type == "heart_rate":
        if value >= 100:
            insights.append("Your heart rate is elevated. Consider taking a break.")
        elif value >= 60:
            insights.append("Your heart rate is in the normal range.")
    elif data_type == "sleep":
        if value >= 7:
            insights.append("Excellent sleep duration!")
        elif value < 6:
            insights.append("Consider getting more sleep for better health.")
    return insights


async def _owned_device(session: AsyncSession, user_id: int, device_id: int) -> WearableDevice:
    result = await session.execute(
        select(WearableDevice).where(WearableDevice.id == device_id, WearableDevice.user_id == user_id)
    )
    device = result.scalar_one_or_none()
    if device is None:
        raise NotFoundError(f"Wearable device {device_id} not found", message_key="wearable.not_found")
    return device


def _build(user_id: int, data: HealthDataCreate) -> HealthData:
    fields = data.model_dump(exclude={"metadata"})
    return HealthData(user_id=user_id, meta=data.metadata, **fields)


async def create(session: AsyncSession, user_id: int, data: HealthDataCreate) -> HealthData:
    if data.device_id is not None:
        device = await _owned_device(session, user_id, data.device_id)
        device.last_data_received_at = datetime.utcnow()

    entry = _build(user_id, data)
    session.add(entry)
    await session.flush()
    await session.refresh(entry)
    return entry


async def bulk_create(session: AsyncSession, user_id: int, items: list[HealthDataCreate]) -> list[HealthData]:
    devices: dict[int, WearableDevice] = {}
    for item in items:
        if item.device_id is not None and item.device_id not in devices:
            devices[item.device_id] = await _owned_device(session, user_id, item.device_id)

    now = datetime.utcnow()
    for device in devices.values():
        device.last_data_received_at = now

    entries = [_build(user_id, item) for item in items]
    session.add_all(entries)
    await session.flush()
    logger.info(f"Stored {len(entries)} health readings for user {user_id}")
    return entries


async def find_all(session: AsyncSession, user_id: int, query: HealthDataQuery) -> dict:
    stmt = select(HealthData).where(HealthData.user_id == user_id)
    if query.type:
        stmt = stmt.where(HealthData.type == query.type)
    if query.types:
        stmt = stmt.where(HealthData.type.in_(query.types))
    if query.start_date:
        stmt = stmt.where(HealthData.timestamp >= query.start_date)
    if query.end_date:
        stmt = stmt.where(HealthData.timestamp <= query.end_date)
    if query.device_id is not None:
        stmt = stmt.where(HealthData.device_id == query.device_id)
    if query.quality:
        stmt = stmt.where(HealthData.quality == query.quality)
    if query.provider:
        stmt = stmt.join(WearableDevice, WearableDevice.id == HealthData.device_id).where(
            WearableDevice.provider == query.provider
        )

    total = await session.scalar(select(func.count()).select_from(stmt.subquery()))
    order = HealthData.timestamp.asc() if query.order == "asc" else HealthData.timestamp.desc()
    result = await session.execute(stmt.order_by(order, HealthData.id).limit(query.limit).offset(query.offset))

    return {
        "data": list(result.scalars().all()),
        "total": total or 0,
        "limit": query.limit,
        "offset": query.offset,
    }


async def find_one(session: AsyncSession, entry_id: int, user_id: int) -> HealthData:
    result = await session.execute(
        select(HealthData).where(HealthData.id == entry_id, HealthData.user_id == user_id)
    )
    entry = result.scalar_one_or_none()
    if entry is None:
        raise NotFoundError(f"Health data {entry_id} not found", message_key="health_data.not_found")
    return entry


async def update(session: AsyncSession, entry_id: int, user_id: int, data: HealthDataUpdate) -> HealthData:
    entry = await find_one(session, entry_id, user_id)
    changes = data.model_dump(exclude_unset=True)
    if "metadata" in changes:
        entry.meta = changes.pop("metadata")
    for key, value in changes.items():
        setattr(entry, key, value)
    await session.flush()
    await session.refresh(entry)
    return entry


async def remove(session: AsyncSession, entry_id: int, user_id: int) -> None:
    entry = await find_one(session, entry_id, user_id)
    await session.delete(entry)
    await session.flush()


async def _entries_between(
    session: AsyncSession,
    user_id: int,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    data_type: Optional[str] = None,
) -> list[HealthData]:
    stmt = select(HealthData).where(HealthData.user_id == user_id)
    if data_type:
        stmt = stmt.where(HealthData.type == data_type)
    if start:
        stmt = stmt.where(HealthData.timestamp >= start)
    if end:
        stmt = stmt.where(HealthData.timestamp <= end)
    result = await session.execute(stmt.order_by(HealthData.timestamp))
    return list(result.scalars().all())


async def summary(
    session: AsyncSession,
    user_id: int,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> dict:
    entries = await _entries_between(session, user_id, start, end)

    by_type: dict[str, dict] = {}
    values_by_type: dict[str, list[float]] = defaultdict(list)
    for entry in entries:
        by_type.setdefault(entry.type, {"count": 0})
        by_type[entry.type]["count"] += 1
        value = numeric_value(entry.value)
        if value is not None:
            values_by_type[entry.type].append(value)

    for data_type, stats in by_type.items():
        values = values_by_type.get(data_type)
        if values:
            stats["avg_value"] = round(sum(values) / len(values), 2)
            stats["min_value"] = min(values)
            stats["max_value"] = max(values)

    device_ids = {e.device_id for e in entries if e.device_id is not None}
    devices = {}
    if device_ids:
        result = await session.execute(select(WearableDevice).where(WearableDevice.id.in_(device_ids)))
        devices = {d.id: d for d in result.scalars().all()}

    by_device: dict[str, dict] = {}
    by_quality: dict[str, int] = defaultdict(int)
    for entry in entries:
        by_quality[entry.quality] += 1
        device = devices.get(entry.device_id)
        key = str(entry.device_id) if device else "manual"
        if key not in by_device:
            by_device[key] = {
                "device_name": device.name if device else "Manual entry",
                "provider": device.provider if device else None,
                "count": 0,
            }
        by_device[key]["count"] += 1

    return {
        "by_type": by_type,
        "by_device": by_device,
        "by_quality": dict(by_quality),
        "total_records": len(entries),
    }


async def by_type(
    session: AsyncSession,
    user_id: int,
    data_type: str,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    limit: int = 100,
) -> list[HealthData]:
    stmt = select(HealthData).where(HealthData.user_id == user_id, HealthData.type == data_type)
    if start:
        stmt = stmt.where(HealthData.timestamp >= start)
    if end:
        stmt = stmt.where(HealthData.timestamp <= end)
    result = await session.execute(stmt.order_by(HealthData.timestamp.desc()).limit(limit))
    return list(result.scalars().all())


async def latest(session: AsyncSession, user_id: int, data_type: Optional[str] = None, limit: int = 10) -> list[HealthData]:
    stmt = select(HealthData).where(HealthData.user_id == user_id)
    if data_type:
        stmt = stmt.where(HealthData.type == data_type)
    result = await session.execute(stmt.order_by(HealthData.timestamp.desc(), HealthData.id.desc()).limit(limit))
    return list(result.scalars().all())


async def trends(
    session: AsyncSession,
    user_id: int,
    data_type: str,
    days: int = 30,
    group_by: str = "day",
    now: Optional[datetime] = None,
) -> list[dict]:
    """Average numeric value per period, oldest period first."""
    now = now or datetime.utcnow()
    entries = await _entries_between(session, user_id, now - timedelta(days=days), now, data_type)

    grouped: dict[str, list[float]] = defaultdict(list)
    for entry in entries:
        value = numeric_value(entry.value)
        if value is not None:
            grouped[period_key(entry.timestamp, group_by)].append(value)

    return [
        {"period": period, "average": round(sum(values) / len(values), 2), "count": len(values)}
        for period, values in sorted(grouped.items())
    ]


async def process(session: AsyncSession, entry_id: int, user_id: int) -> HealthData:
    entry = await find_one(session, entry_id, user_id)
    entry.processed_data = {
        "original_value": entry.value,
        "processed_at": datetime.utcnow().isoformat(),
        "insights": reading_insights(entry.type, numeric_value(entry.value)),
    }
    entry.is_processed = True
    await session.flush()
    await session.refresh(entry)
    return entry


async def insights(session: AsyncSession, user_id: int, days: int = 7, now: Optional[datetime] = None) -> list[dict]:
    now = now or datetime.utcnow()
    result = await session.execute(
        select(HealthData)
        .where(
            HealthData.user_id == user_id,
            HealthData.is_processed.is_(True),
            HealthData.timestamp >= now - timedelta(days=days),
        )
        .order_by(HealthData.timestamp.desc())
        .limit(20)
    )
    return [
        {
            "id": entry.id,
            "type": entry.type,
            "timestamp": entry.timestamp,
            "value": entry.value,
            "insights": (entry.processed_data or {}).get("insights", []),
        }
        for entry in result.scalars().all()
    ]
