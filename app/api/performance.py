"""Monitoring, cache and queue administration endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import get_current_user
from app.models.system import JobStatus
from app.models.user import User
from app.schemas.system import JobCreate, JobResponse
from app.services import monitoring, queue
from app.services.cache import CacheService

router = APIRouter(
    prefix="/api/performance",
    tags=["performance"],
    dependencies=[Depends(get_current_user)],
)


@router.get("/health")
async def health(db: AsyncSession = Depends(get_db)):
    """Database, cache, queue and system checks."""
    return await monitoring.health_check(db)


@router.get("/metrics")
async def metrics(db: AsyncSession = Depends(get_db)):
    return await monitoring.system_metrics(db)


@router.get("/metrics/history")
async def metrics_history(limit: int = Query(100, ge=1, le=monitoring.HISTORY_SIZE)):
    return monitoring.metrics_history(limit)


@router.get("/stats")
async def performance_stats(db: AsyncSession = Depends(get_db)):
    return await monitoring.performance_stats(db)


@router.get("/system")
async def system_info():
    return monitoring.system_info()


# Cache

@router.get("/cache/stats")
async def cache_stats(db: AsyncSession = Depends(get_db)):
    return await CacheService(db).stats()


@router.get("/cache/keys")
async def cache_keys(pattern: str = "*", db: AsyncSession = Depends(get_db)):
    keys = await CacheService(db).keys(pattern)
    return {"pattern": pattern, "keys": keys, "count": len(keys)}


@router.delete("/cache/keys")
async def delete_cache_keys(pattern: str, db: AsyncSession = Depends(get_db)):
    deleted = await CacheService(db).delete_pattern(pattern)
    return {"pattern": pattern, "deleted": deleted}


@router.delete("/cache")
async def reset_cache(db: AsyncSession = Depends(get_db)):
    deleted = await CacheService(db).reset()
    return {"deleted": deleted}


# Queues

@router.get("/queues")
async def all_queue_stats(db: AsyncSession = Depends(get_db)):
    return await queue.all_queue_stats(db)


@router.get("/queues/{queue_name}/stats")
async def queue_stats(queue_name: str, db: AsyncSession = Depends(get_db)):
    return await queue.queue_stats(db, queue_name)


@router.get("/queues/{queue_name}/jobs", response_model=list[JobResponse])
async def list_jobs(
    queue_name: str,
    status: Optional[JobStatus] = None,
    start: int = Query(0, ge=0),
    end: int = Query(10, ge=0),
    db: AsyncSession = Depends(get_db),
):
    return await queue.list_jobs(db, queue_name, status.value if status else None, start, end)


@router.post("/queues/{queue_name}/jobs", response_model=JobResponse, status_code=201)
async def enqueue_job(queue_name: str, data: JobCreate, db: AsyncSession = Depends(get_db)):
    return await queue.enqueue(db, queue_name, data.name, data.data, data.max_attempts)


@router.post("/queues/{queue_name}/pause")
async def pause_queue(queue_name: str):
    queue.pause(queue_name)
    return {"queue": queue_name, "paused": True}


@router.post("/queues/{queue_name}/resume")
async def resume_queue(queue_name: str, db: AsyncSession = Depends(get_db)):
    scheduled = await queue.resume(db, queue_name)
    return {"queue": queue_name, "paused": False, "scheduled": scheduled}


@router.delete("/queues/{queue_name}/completed")
async def clean_completed(queue_name: str, db: AsyncSession = Depends(get_db)):
    removed = await queue.clean(db, queue_name, JobStatus.COMPLETED.value)
    return {"queue": queue_name, "removed": removed}


@router.delete("/queues/{queue_name}/failed")
async def clean_failed(queue_name: str, db: AsyncSession = Depends(get_db)):
    removed = await queue.clean(db, queue_name, JobStatus.FAILED.value)
    return {"queue": queue_name, "removed": removed}


@router.get("/jobs/{job_id}", response_model=JobResponse)
async def get_job(job_id: int, db: AsyncSession = Depends(get_db)):
    return await queue.get_job(db, job_id)


@router.delete("/jobs/{job_id}", status_code=204)
async def remove_job(job_id: int, db: AsyncSession = Depends(get_db)):
    await queue.remove_job(db, job_id)
