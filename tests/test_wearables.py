"""Tests for wearable device connections and their health readings."""

import pytest
from datetime import datetime

from app.core.exceptions import ConflictError, NotFoundError
from app.models.wearable import HealthData
from app.schemas.wearables import DeviceConnect, DeviceUpdate, HealthDataCreate, SyncSettingsUpdate
from app.services import health_data
from app.services import wearables


async def _connect(session, user, provider="fitbit", type="fitness_tracker", **fields):
    data = DeviceConnect(provider=provider, type=type, name=fields.pop("name", "Wrist"), **fields)
    return await wearables.connect_device(session, user.id, data)


class TestProviders:

    def test_catalog_lists_every_provider(self):
        providers = {p["provider"] for p in wearables.list_providers()}
        assert {"fitbit", "garmin", "oura", "custom"} <= providers

    def test_unknown_provider(self):
        with pytest.raises(NotFoundError):
            wearables.provider_config("pebble")

    def test_provider_config(self):
        config = wearables.provider_config("oura")
        assert config["name"] == "Oura"
        assert "sleep" in config["supported_metrics"]


class TestDevices:

    @pytest.mark.asyncio
    async def test_connect_starts_pending_with_default_sync_settings(self, async_session, user):
        device = await _connect(async_session, user, sync_settings={"weight": True})
        assert device.status == "pending"
        assert device.sync_settings["weight"] is True
        assert device.sync_settings["steps"] is True

    @pytest.mark.asyncio
    async def test_one_device_per_provider(self, async_session, user, other_user):
        await _connect(async_session, user)
        with pytest.raises(ConflictError):
            await _connect(async_session, user, name="Second")
        # another user may connect the same provider
        await _connect(async_session, other_user)

    @pytest.mark.asyncio
    async def test_connected_only_lists_connected(self, async_session, user):
        watch = await _connect(async_session, user, provider="garmin", type="smartwatch")
        await _connect(async_session, user, provider="oura", type="sleep_tracker")
        await wearables.update_connection_status(async_session, watch.id, user.id, "connected")

        connected = await wearables.list_connected(async_session, user.id)
        assert [d.id for d in connected] == [watch.id]
        assert connected[0].last_sync_at is not None

    @pytest.mark.asyncio
    async def test_filter_by_type_and_provider(self, async_session, user):
        await _connect(async_session, user, provider="garmin", type="smartwatch")
        await _connect(async_session, user, provider="oura", type="sleep_tracker")

        by_type = await wearables.list_by_field(async_session, user.id, "type", "smartwatch")
        by_provider = await wearables.list_by_field(async_session, user.id, "provider", "oura")
        assert [d.provider for d in by_type] == ["garmin"]
        assert [d.type for d in by_provider] == ["sleep_tracker"]

    @pytest.mark.asyncio
    async def test_error_status_keeps_message(self, async_session, user):
        device = await _connect(async_session, user)
        device = await wearables.update_connection_status(
            async_session, device.id, user.id, "error", "Token rejected"
        )
        assert device.error_message == "Token rejected"

        device = await wearables.refresh_connection(async_session, device.id, user.id)
        assert device.status == "connected"
        assert device.error_message is None

    @pytest.mark.asyncio
    async def test_update_metadata(self, async_session, user):
        device = await _connect(async_session, user)
        device = await wearables.update_device(
            async_session, device.id, user.id, DeviceUpdate(name="Left wrist", metadata={"battery": 80})
        )
        assert device.name == "Left wrist"
        assert device.meta == {"battery": 80}

    @pytest.mark.asyncio
    async def test_other_users_device_not_found(self, async_session, user, other_user):
        device = await _connect(async_session, user)
        with pytest.raises(NotFoundError):
            await wearables.get_device(async_session, device.id, other_user.id)

    @pytest.mark.asyncio
    async def test_remove_keeps_readings(self, async_session, user):
        device = await _connect(async_session, user)
        entry = await health_data.create(async_session, user.id, HealthDataCreate(
            type="steps", timestamp=datetime(2025, 3, 1, 12), value=4200, device_id=device.id,
        ))

        await wearables.remove_device(async_session, device.id, user.id)

        await async_session.refresh(entry)
        assert entry.device_id is None
        assert await async_session.get(HealthData, entry.id) is not None

    @pytest.mark.asyncio
    async def test_bulk_sync_settings_merge(self, async_session, user):
        device = await _connect(async_session, user)
        updated = await wearables.bulk_update_sync_settings(
            async_session, user.id, [SyncSettingsUpdate(device_id=device.id, sync_settings={"steps": False})]
        )
        assert updated[0].sync_settings["steps"] is False
        assert updated[0].sync_settings["sleep"] is True


class TestDeviceStats:

    @pytest.mark.asyncio
    async def test_stats_and_summary(self, async_session, user):
        device = await _connect(async_session, user)
        await _connect(async_session, user, provider="oura", type="sleep_tracker")
        await health_data.bulk_create(async_session, user.id, [
            HealthDataCreate(type="steps", timestamp=datetime(2025, 3, 1, 12), value=4000, device_id=device.id),
            HealthDataCreate(type="steps", timestamp=datetime(2025, 3, 2, 12), value=6000, device_id=device.id),
            HealthDataCreate(type="heart_rate", timestamp=datetime(2025, 3, 2, 12), value=61, device_id=device.id),
        ])

        stats = await wearables.device_stats(async_session, device.id, user.id)
        assert stats["total_data_points"] == 3
        assert stats["data_types"] == {"steps": 2, "heart_rate": 1}
        assert stats["last_data_received_at"] is not None

        summary = await wearables.health_summary(async_session, user.id)
        assert summary["total_devices"] == 2
        assert summary["pending"] == 2
        assert summary["by_provider"] == {"fitbit": 1, "oura": 1}
        assert summary["total_data_points"] == 3
