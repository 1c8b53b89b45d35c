"""Tests for system metrics and health checks."""

import pytest
from unittest.mock import MagicMock, patch

from app.core.config import Settings
from app.core.exceptions import ServiceUnavailableError
from app.services import monitoring
from app.services.cache import CacheService


@pytest.fixture(autouse=True)
def empty_history():
    monitoring.clear_history()
    yield
    monitoring.clear_history()


class TestMetrics:

    @pytest.mark.asyncio
    async def test_snapshot_shape(self, async_session):
        snapshot = await monitoring.system_metrics(async_session)

        assert set(snapshot) == {"timestamp", "memory", "cpu", "database", "cache", "queues", "uptime"}
        assert snapshot["memory"]["total"] > 0
        assert len(snapshot["cpu"]["load"]) == 3
        assert snapshot["queues"] == {"total": 0, "active": 0, "failed": 0}

    @pytest.mark.asyncio
    async def test_history_keeps_latest(self, async_session):
        for _ in range(3):
            await monitoring.system_metrics(async_session)

        assert len(monitoring.metrics_history(2)) == 2
        assert len(monitoring.metrics_history()) == 3
        assert monitoring.metrics_history(0) == []

    @pytest.mark.asyncio
    async def test_disabled_monitoring(self, async_session):
        with patch.object(monitoring, "get_settings", return_value=Settings(monitoring_enabled=False)):
            with pytest.raises(ServiceUnavailableError):
                await monitoring.system_metrics(async_session)


class TestHealthCheck:

    @pytest.mark.asyncio
    async def test_all_checks_up(self, async_session):
        memory = MagicMock(percent=40.0)
        with patch.object(monitoring.psutil, "virtual_memory", return_value=memory):
            result = await monitoring.health_check(async_session)

        assert result["status"] == "healthy"
        assert [c["name"] for c in result["checks"]] == ["database", "cache", "queues", "system"]
        assert result["summary"] == {"total": 4, "healthy": 4, "unhealthy": 0}

    @pytest.mark.asyncio
    async def test_cache_check_leaves_hit_rate_alone(self, async_session):
        memory = MagicMock(percent=40.0)
        with patch.object(monitoring.psutil, "virtual_memory", return_value=memory):
            for _ in range(3):
                await monitoring.health_check(async_session)

        assert (CacheService.hits, CacheService.misses) == (0, 0)
        assert not await CacheService(async_session).exists(monitoring.HEALTH_CHECK_KEY)

    @pytest.mark.asyncio
    async def test_memory_pressure_degrades(self, async_session):
        memory = MagicMock(percent=97.5)
        with patch.object(monitoring.psutil, "virtual_memory", return_value=memory):
            result = await monitoring.health_check(async_session)

        assert result["status"] == "degraded"
        system = result["checks"][-1]
        assert system["status"] == "down"
        assert "97.5" in system["error"]

    @pytest.mark.asyncio
    async def test_disabled_health_checks(self, async_session):
        with patch.object(monitoring, "get_settings", return_value=Settings(health_check_enabled=False)):
            with pytest.raises(ServiceUnavailableError):
                await monitoring.health_check(async_session)


class TestSystemInfo:

    def test_info(self):
        info = monitoring.system_info()
        assert info["cpu_count"] >= 1
        assert info["python_version"].startswith("3.")
        assert info["uptime"] >= 0
