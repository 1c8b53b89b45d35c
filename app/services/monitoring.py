"""System metrics, health checks and performance statistics."""

import logging
import os
import platform
import time
from collections import deque
from datetime import datetime

import psutil
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.exceptions import ServiceUnavailableError
from app.models.system import CacheEntry
from app.services import queue
from app.services.cache import CacheService

logger = logging.getLogger(__name__)

HISTORY_SIZE = 1000
MEMORY_LIMIT_PERCENT = 95
HEALTH_CHECK_KEY = "health-check"

STARTED_AT = time.time()

_history: deque = deque(maxlen=HISTORY_SIZE)


def uptime_seconds() -> float:
    return round(time.time() - STARTED_AT, 1)


def _ensure_monitoring() -> None:
    if not get_settings().monitoring_enabled:
        raise ServiceUnavailableError("Monitoring is disabled", message_key="monitoring.disabled")


def _ensure_health_checks() -> None:
    if not get_settings().health_check_enabled:
        raise ServiceUnavailableError("Health checks are disabled", message_key="monitoring.health_disabled")


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


async def _database_latency(session: AsyncSession) -> float:
    started = time.perf_counter()
    await session.execute(text("SELECT 1"))
    return _elapsed_ms(started)


async def system_metrics(session: AsyncSession) -> dict:
    """Take a metrics snapshot and add it to the history."""
    _ensure_monitoring()

    memory = psutil.virtual_memory()
    cache_stats = await CacheService(session).stats()
    queue_stats = await queue.all_queue_stats(session)

    snapshot = {
        "timestamp": datetime.utcnow().isoformat(),
        "memory": {
            "used": memory.used,
            "total": memory.total,
            "percentage": memory.percent,
        },
        "cpu": {
            "load": list(psutil.getloadavg()),
            "usage": psutil.cpu_percent(interval=None),
        },
        "database": {"response_time_ms": await _database_latency(session)},
        "cache": {"hit_rate": cache_stats["hit_rate"], "keys": cache_stats["live_keys"]},
        "queues": {
            "total": sum(sum(v for k, v in s.items() if k != "paused") for s in queue_stats.values()),
            "active": sum(s["active"] for s in queue_stats.values()),
            "failed": sum(s["failed"] for s in queue_stats.values()),
        },
        "uptime": uptime_seconds(),
    }
    _history.append(snapshot)
    return snapshot


def metrics_history(limit: int = 100) -> list[dict]:
    _ensure_monitoring()
    if limit <= 0:
        return []
    return list(_history)[-limit:]


def clear_history() -> None:
    _history.clear()


async def _check(name: str, run) -> dict:
    started = time.perf_counter()
    try:
        details = await run()
        return {"name": name, "status": "up", "response_time_ms": _elapsed_ms(started), "details": details}
    except Exception as e:
        logger.error(f"Health check {name} failed: {e}")
        return {"name": name, "status": "down", "response_time_ms": _elapsed_ms(started), "error": str(e)}


async def health_check(session: AsyncSession) -> dict:
    _ensure_health_checks()

    async def database():
        await session.execute(text("SELECT 1"))
        return {"connected": True}

    async def cache():
        service = CacheService(session)
        stamp = datetime.utcnow().isoformat()
        await service.set(HEALTH_CHECK_KEY, stamp, ttl=10)
        # Read the row directly so the check does not count as a cache hit
        entry = await session.get(CacheEntry, HEALTH_CHECK_KEY, populate_existing=True)
        if entry is None or entry.value != stamp:
            raise RuntimeError("cache round trip returned a different value")
        await service.delete(HEALTH_CHECK_KEY)
        return {"round_trip": True}

    async def queues():
        return await queue.all_queue_stats(session)

    async def system():
        percent = psutil.virtual_memory().percent
        if percent >= MEMORY_LIMIT_PERCENT:
            raise RuntimeError(f"memory usage at {percent}%")
        return {"memory_percent": percent}

    checks = [
        await _check("database", database),
        await _check("cache", cache),
        await _check("queues", queues),
        await _check("system", system),
    ]
    up = sum(1 for c in checks if c["status"] == "up")
    if up == len(checks):
        status = "healthy"
    elif up == 0:
        status = "unhealthy"
    else:
        status = "degraded"

    return {
        "status": status,
        "timestamp": datetime.utcnow().isoformat(),
        "uptime": uptime_seconds(),
        "checks": checks,
        "summary": {"total": len(checks), "healthy": up, "unhealthy": len(checks) - up},
    }


async def performance_stats(session: AsyncSession) -> dict:
    return {
        "metrics": await system_metrics(session),
        "health": await health_check(session),
        "cache": await CacheService(session).stats(),
        "queues": await queue.all_queue_stats(session),
    }


def system_info() -> dict:
    return {
        "platform": platform.system(),
        "platform_release": platform.release(),
        "architecture": platform.machine(),
        "python_version": platform.python_version(),
        "cpu_count": psutil.cpu_count() or os.cpu_count(),
        "total_memory": psutil.virtual_memory().total,
        "pid": os.getpid(),
        "uptime": uptime_seconds(),
    }
