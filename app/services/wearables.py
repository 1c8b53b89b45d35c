"""Wearable device connections."""

import logging
from collections import Counter
from datetime import datetime, timedelta

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, NotFoundError
from app.models.wearable import (
    ConnectionStatus,
    DEFAULT_SYNC_SETTINGS,
    HealthData,
    WearableDevice,
)
from app.schemas.wearables import DeviceConnect, DeviceUpdate, SyncSettingsUpdate

logger = logging.getLogger(__name__)

PROVIDER_CATALOG = {
    "fitbit": {
        "name": "Fitbit",
        "device_types": ["fitness_tracker", "smartwatch", "weight_scale"],
        "supported_metrics": ["steps", "heart_rate", "sleep", "calories", "distance", "weight"],
    },
    "apple_health": {
        "name": "Apple Health",
        "device_types": ["smartwatch", "heart_rate_monitor", "sleep_tracker"],
        "supported_metrics": ["steps", "heart_rate", "sleep", "calories", "distance", "weight", "blood_pressure"],
    },
    "google_fit": {
        "name": "Google Fit",
        "device_types": ["fitness_tracker", "smartwatch"],
        "supported_metrics": ["steps", "heart_rate", "sleep", "calories", "distance", "weight"],
    },
    "garmin": {
        "name": "Garmin Connect",
        "device_types": ["smartwatch", "fitness_tracker", "heart_rate_monitor"],
        "supported_metrics": ["steps", "heart_rate", "sleep", "calories", "distance", "stress", "oxygen_saturation"],
    },
    "oura": {
        "name": "Oura",
        "device_types": ["sleep_tracker", "activity_tracker"],
        "supported_metrics": ["sleep", "heart_rate", "resting_heart_rate", "temperature", "steps"],
    },
    "samsung_health": {
        "name": "Samsung Health",
        "device_types": ["smartwatch", "fitness_tracker"],
        "supported_metrics": ["steps", "heart_rate", "sleep", "calories", "stress", "oxygen_saturation"],
    },
    "withings": {
        "name": "Withings",
        "device_types": ["weight_scale", "blood_pressure_monitor", "sleep_tracker", "temperature_monitor"],
        "supported_metrics": ["weight", "blood_pressure", "sleep", "heart_rate", "temperature"],
    },
    "peloton": {
        "name": "Peloton",
        "device_types": ["heart_rate_monitor", "activity_tracker"],
        "supported_metrics": ["workout", "calories", "heart_rate", "active_minutes"],
    },
    "strava": {
        "name": "Strava",
        "device_types": ["activity_tracker"],
        "supported_metrics": ["exercise", "distance", "calories", "heart_rate"],
    },
    "custom": {
        "name": "Custom device",
        "device_types": [],
        "supported_metrics": [],
    },
}


def list_providers() -> list[dict]:
    return [{"provider": key, **value} for key, value in PROVIDER_CATALOG.items()]


def provider_config(provider: str) -> dict:
    if provider not in PROVIDER_CATALOG:
        raise NotFoundError(f"Unknown wearable provider {provider}")
    return {"provider": provider, **PROVIDER_CATALOG[provider]}


async def connect_device(session: AsyncSession, user_id: int, data: DeviceConnect) -> WearableDevice:
    existing = await session.execute(
        select(WearableDevice.id).where(
            WearableDevice.user_id == user_id,
            WearableDevice.provider == data.provider,
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise ConflictError(
            f"Device with provider {data.provider} already exists for this user",
            message_key="wearable.already_connected",
            provider=data.provider,
        )

    fields = data.model_dump(exclude={"metadata", "sync_settings"})
    device = WearableDevice(
        user_id=user_id,
        status=ConnectionStatus.PENDING.value,
        meta=data.metadata,
        sync_settings={**DEFAULT_SYNC_SETTINGS, **(data.sync_settings or {})},
        **fields,
    )
    session.add(device)
    await session.flush()
    await session.refresh(device)
    logger.info(f"User {user_id} connected {data.provider} device {device.id}")
    return device


async def list_devices(session: AsyncSession, user_id: int) -> list[WearableDevice]:
    result = await session.execute(
        select(WearableDevice)
        .where(WearableDevice.user_id == user_id)
        .order_by(WearableDevice.created_at.desc(), WearableDevice.id.desc())
    )
    return list(result.scalars().all())


async def list_connected(session: AsyncSession, user_id: int) -> list[WearableDevice]:
    result = await session.execute(
        select(WearableDevice)
        .where(
            WearableDevice.user_id == user_id,
            WearableDevice.status == ConnectionStatus.CONNECTED.value,
            WearableDevice.is_active.is_(True),
        )
        .order_by(WearableDevice.last_sync_at.desc())
    )
    return list(result.scalars().all())


async def list_by_field(session: AsyncSession, user_id: int, field: str, value: str) -> list[WearableDevice]:
    """Devices filtered by ``type`` or ``provider``."""
    column = getattr(WearableDevice, field)
    result = await session.execute(
        select(WearableDevice).where(WearableDevice.user_id == user_id, column == value)
    )
    return list(result.scalars().all())


async def get_device(session: AsyncSession, device_id: int, user_id: int) -> WearableDevice:
    result = await session.execute(
        select(WearableDevice).where(WearableDevice.id == device_id, WearableDevice.user_id == user_id)
    )
    device = result.scalar_one_or_none()
    if device is None:
        raise NotFoundError(f"Wearable device {device_id} not found", message_key="wearable.not_found")
    return device


async def update_device(session: AsyncSession, device_id: int, user_id: int, data: DeviceUpdate) -> WearableDevice:
    device = await get_device(session, device_id, user_id)
    changes = data.model_dump(exclude_unset=True)
    if "metadata" in changes:
        device.meta = changes.pop("metadata")
    for key, value in changes.items():
        setattr(device, key, value)
    if changes.get("status") == ConnectionStatus.CONNECTED.value:
        device.last_sync_at = datetime.utcnow()
    await session.flush()
    await session.refresh(device)
    return device


async def remove_device(session: AsyncSession, device_id: int, user_id: int) -> None:
    device = await get_device(session, device_id, user_id)
    # Readings outlive their device
    await session.execute(
        update(HealthData).where(HealthData.device_id == device.id).values(device_id=None)
    )
    await session.delete(device)
    await session.flush()
    logger.info(f"User {user_id} removed device {device_id}")


async def update_connection_status(
    session: AsyncSession,
    device_id: int,
    user_id: int,
    status: str,
    error_message: str | None = None,
) -> WearableDevice:
    device = await get_device(session, device_id, user_id)
    device.status = status
    if status == ConnectionStatus.CONNECTED.value:
        device.last_sync_at = datetime.utcnow()
        device.error_message = None
    elif error_message:
        device.error_message = error_message
    await session.flush()
    await session.refresh(device)
    return device


async def refresh_connection(session: AsyncSession, device_id: int, user_id: int) -> WearableDevice:
    """Mark the device connected again after a token refresh on the provider side."""
    return await update_connection_status(session, device_id, user_id, ConnectionStatus.CONNECTED.value)


async def device_stats(session: AsyncSession, device_id: int, user_id: int) -> dict:
    device = await get_device(session, device_id, user_id)
    week_ago = datetime.utcnow() - timedelta(days=7)

    total = await session.scalar(
        select(func.count()).select_from(HealthData).where(HealthData.device_id == device.id)
    )
    recent = await session.scalar(
        select(func.count()).select_from(HealthData).where(
            HealthData.device_id == device.id,
            HealthData.timestamp >= week_ago,
        )
    )
    by_type = await session.execute(
        select(HealthData.type, func.count(HealthData.id))
        .where(HealthData.device_id == device.id)
        .group_by(HealthData.type)
    )

    return {
        "device_id": device.id,
        "total_data_points": total or 0,
        "recent_data_points": recent or 0,
        "data_types": {row[0]: row[1] for row in by_type.all()},
        "last_sync_at": device.last_sync_at,
        "last_data_received_at": device.last_data_received_at,
        "status": device.status,
        "capabilities": device.capabilities or [],
        "sync_settings": device.sync_settings or {},
    }


async def health_summary(session: AsyncSession, user_id: int) -> dict:
    """Connection health across all of a user's devices."""
    devices = await list_devices(session, user_id)
    data_points = await session.scalar(
        select(func.count()).select_from(HealthData).where(HealthData.user_id == user_id)
    )
    statuses = Counter(d.status for d in devices)
    synced = [d.last_sync_at for d in devices if d.last_sync_at]

    return {
        "total_devices": len(devices),
        "connected": statuses.get(ConnectionStatus.CONNECTED.value, 0),
        "disconnected": statuses.get(ConnectionStatus.DISCONNECTED.value, 0),
        "pending": statuses.get(ConnectionStatus.PENDING.value, 0),
        "error": statuses.get(ConnectionStatus.ERROR.value, 0),
        "expired": statuses.get(ConnectionStatus.EXPIRED.value, 0),
        "by_provider": dict(Counter(d.provider for d in devices)),
        "by_type": dict(Counter(d.type for d in devices)),
        "last_sync_at": max(synced) if synced else None,
        "total_data_points": data_points or 0,
    }


async def bulk_update_sync_settings(
    session: AsyncSession,
    user_id: int,
    updates: list[SyncSettingsUpdate],
) -> list[WearableDevice]:
    devices = []
    for item in updates:
        device = await get_device(session, item.device_id, user_id)
        device.sync_settings = {**(device.sync_settings or {}), **item.sync_settings}
        devices.append(device)
    await session.flush()
    return devices
