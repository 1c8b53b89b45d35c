"""Wearable device API endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import get_current_user
from app.models.user import User
from app.models.wearable import DeviceType, WearableProvider
from app.schemas.wearables import (
    ConnectionStatusUpdate,
    DeviceConnect,
    DeviceResponse,
    DeviceUpdate,
    SyncSettingsUpdate,
)
from app.services import wearables

router = APIRouter(prefix="/api/wearables", tags=["wearables"])


@router.get("/providers")
async def list_providers():
    """Supported providers with their device and data types."""
    return wearables.list_providers()


@router.get("/providers/{provider}")
async def get_provider(provider: str):
    return wearables.provider_config(provider)


@router.post("/devices", response_model=DeviceResponse, status_code=201)
async def connect_device(
    data: DeviceConnect,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await wearables.connect_device(db, user.id, data)


@router.get("/devices", response_model=list[DeviceResponse])
async def list_devices(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await wearables.list_devices(db, user.id)


@router.get("/devices/connected", response_model=list[DeviceResponse])
async def list_connected(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await wearables.list_connected(db, user.id)


@router.get("/devices/type/{device_type}", response_model=list[DeviceResponse])
async def list_by_type(
    device_type: DeviceType,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await wearables.list_by_field(db, user.id, "type", device_type.value)


@router.get("/devices/provider/{provider}", response_model=list[DeviceResponse])
async def list_by_provider(
    provider: WearableProvider,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await wearables.list_by_field(db, user.id, "provider", provider.value)


@router.patch("/devices/sync-settings", response_model=list[DeviceResponse])
async def bulk_update_sync_settings(
    updates: list[SyncSettingsUpdate],
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await wearables.bulk_update_sync_settings(db, user.id, updates)


@router.get("/summary")
async def health_summary(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    """Device counts by status, provider and type."""
    return await wearables.health_summary(db, user.id)


@router.get("/devices/{device_id}", response_model=DeviceResponse)
async def get_device(device_id: int, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await wearables.get_device(db, device_id, user.id)


@router.patch("/devices/{device_id}", response_model=DeviceResponse)
async def update_device(
    device_id: int,
    data: DeviceUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await wearables.update_device(db, device_id, user.id, data)


@router.delete("/devices/{device_id}", status_code=204)
async def remove_device(device_id: int, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    await wearables.remove_device(db, device_id, user.id)


@router.patch("/devices/{device_id}/status", response_model=DeviceResponse)
async def update_connection_status(
    device_id: int,
    data: ConnectionStatusUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await wearables.update_connection_status(db, device_id, user.id, data.status, data.error_message)


@router.post("/devices/{device_id}/refresh", response_model=DeviceResponse)
async def refresh_connection(device_id: int, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await wearables.refresh_connection(db, device_id, user.id)


@router.get("/devices/{device_id}/stats")
async def device_stats(device_id: int, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await wearables.device_stats(db, device_id, user.id)
