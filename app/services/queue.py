"""Database-backed job queue.

Jobs are rows in ``job_records``. Enqueueing persists the job and, when the
scheduler is running, adds a one-off APScheduler date job that calls
``process_job``. Failed jobs are retried with exponential backoff until
``max_attempts`` is used up.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from apscheduler.triggers.date import DateTrigger
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import get_settings
from app.core.database import session_scope
from app.core.exceptions import BadRequestError, NotFoundError
from app.models.system import JobRecord, JobStatus
from app.services.processors import HANDLERS

logger = logging.getLogger(__name__)

QUEUES = ("default", "notifications", "data-sync", "analytics")

CLEANABLE_STATUSES = (JobStatus.COMPLETED.value, JobStatus.FAILED.value)

# Queues that currently refuse to start jobs
_paused: set[str] = set()


def _check_queue(queue: str) -> None:
    if queue not in QUEUES:
        raise BadRequestError(f"Unknown queue: {queue}", message_key="queue.unknown_queue", queue=queue)


def _check_job_name(queue: str, name: str) -> None:
    if name not in HANDLERS.get(queue, {}):
        raise BadRequestError(
            f"Unknown job {name} for queue {queue}",
            message_key="queue.unknown_job",
            name=name,
            queue=queue,
        )


def backoff_delay(attempt: int) -> float:
    """Seconds to wait before retry number ``attempt`` (1-based)."""
    return get_settings().queue_backoff_seconds * 2 ** (attempt - 1)


def is_paused(queue: str) -> bool:
    return queue in _paused


def _schedule(job_id: int, run_at: Optional[datetime] = None) -> None:
    """Hand a job to the background scheduler if it is running."""
    # Imported here: the scheduler module enqueues sync jobs through this one
    from app.services import scheduler as background

    if background.scheduler is None:
        logger.debug(f"Scheduler not running, job {job_id} stays queued")
        return
    run_at = (run_at or datetime.utcnow()).replace(tzinfo=timezone.utc)
    background.scheduler.add_job(
        process_job,
        DateTrigger(run_date=run_at),
        args=[job_id],
        id=f"job-{job_id}",
        replace_existing=True,
    )


async def enqueue(
    session: AsyncSession,
    queue: str,
    name: str,
    data: Optional[dict] = None,
    max_attempts: Optional[int] = None,
) -> JobRecord:
    _check_queue(queue)
    _check_job_name(queue, name)

    job = JobRecord(
        queue=queue,
        name=name,
        data=data or {},
        status=JobStatus.WAITING.value,
        attempts_made=0,
        max_attempts=max_attempts or get_settings().queue_max_attempts,
        created_at=datetime.utcnow(),
    )
    session.add(job)
    await session.flush()
    # The job must be visible to the worker's own session
    await session.commit()
    logger.info(f"Queued {queue}/{name} as job {job.id}")

    if not is_paused(queue):
        _schedule(job.id)
    return job


async def _trim_history(session: AsyncSession, queue: str) -> None:
    settings = get_settings()
    for status, keep in (
        (JobStatus.COMPLETED.value, settings.queue_keep_completed),
        (JobStatus.FAILED.value, settings.queue_keep_failed),
    ):
        kept = (
            select(JobRecord.id)
            .where(JobRecord.queue == queue, JobRecord.status == status)
            .order_by(JobRecord.finished_at.desc(), JobRecord.id.desc())
            .limit(keep)
        )
        await session.execute(
            delete(JobRecord).where(
                JobRecord.queue == queue,
                JobRecord.status == status,
                JobRecord.id.not_in(kept),
            )
        )


async def process_job(job_id: int, session_factory: Optional[async_sessionmaker] = None) -> Optional[JobRecord]:
    """Run one job and record its outcome.

    Returns the updated job, or None if it no longer exists or is not runnable.
    """
    async with session_scope(session_factory) as session:
        job = await session.get(JobRecord, job_id)
        if job is None or job.status not in (JobStatus.WAITING.value, JobStatus.DELAYED.value):
            return None
        if is_paused(job.queue):
            logger.info(f"Queue {job.queue} is paused, job {job_id} left waiting")
            job.status = JobStatus.WAITING.value
            return job

        job.status = JobStatus.ACTIVE.value
        job.attempts_made += 1
        job.started_at = datetime.utcnow()
        queue, name, data = job.queue, job.name, dict(job.data or {})

    handler = HANDLERS[queue][name]
    retry_at = None
    try:
        async with session_scope(session_factory) as work_session:
            result = await handler(work_session, data)
    except Exception as e:
        logger.error(f"Job {job_id} ({queue}/{name}) failed: {e}")
        async with session_scope(session_factory) as session:
            job = await session.get(JobRecord, job_id)
            job.error = str(e)
            if job.attempts_made < job.max_attempts:
                retry_at = datetime.utcnow() + timedelta(seconds=backoff_delay(job.attempts_made))
                job.status = JobStatus.DELAYED.value
                job.run_at = retry_at
            else:
                job.status = JobStatus.FAILED.value
                job.finished_at = datetime.utcnow()
            await _trim_history(session, queue)
    else:
        async with session_scope(session_factory) as session:
            job = await session.get(JobRecord, job_id)
            job.status = JobStatus.COMPLETED.value
            job.result = result
            job.error = None
            job.finished_at = datetime.utcnow()
            await _trim_history(session, queue)
        logger.info(f"Job {job_id} ({queue}/{name}) completed")

    if retry_at is not None:
        _schedule(job_id, retry_at)
    return job


async def get_job(session: AsyncSession, job_id: int) -> JobRecord:
    job = await session.get(JobRecord, job_id)
    if job is None:
        raise NotFoundError(f"Job {job_id} not found", message_key="queue.job_not_found")
    return job


async def list_jobs(
    session: AsyncSession,
    queue: str,
    status: Optional[str] = None,
    start: int = 0,
    end: int = 10,
) -> list[JobRecord]:
    """Jobs in a queue, newest first, sliced ``[start, end]`` inclusive."""
    _check_queue(queue)
    query = select(JobRecord).where(JobRecord.queue == queue)
    if status:
        query = query.where(JobRecord.status == status)
    query = query.order_by(JobRecord.created_at.desc(), JobRecord.id.desc())
    query = query.offset(start).limit(max(end - start + 1, 0))
    result = await session.execute(query)
    return list(result.scalars().all())


async def remove_job(session: AsyncSession, job_id: int) -> None:
    job = await get_job(session, job_id)
    await session.delete(job)
    await session.flush()


async def queue_stats(session: AsyncSession, queue: str) -> dict[str, Any]:
    _check_queue(queue)
    result = await session.execute(
        select(JobRecord.status, func.count(JobRecord.id))
        .where(JobRecord.queue == queue)
        .group_by(JobRecord.status)
    )
    counts = dict(result.all())
    stats = {status.value: counts.get(status.value, 0) for status in JobStatus}
    stats["paused"] = is_paused(queue)
    return stats


async def all_queue_stats(session: AsyncSession) -> dict[str, dict]:
    return {queue: await queue_stats(session, queue) for queue in QUEUES}


def pause(queue: str) -> None:
    _check_queue(queue)
    _paused.add(queue)
    logger.info(f"Queue {queue} paused")


async def resume(session: AsyncSession, queue: str) -> int:
    """Unpause a queue and schedule its waiting jobs. Returns how many."""
    _check_queue(queue)
    _paused.discard(queue)
    result = await session.execute(
        select(JobRecord.id).where(JobRecord.queue == queue, JobRecord.status == JobStatus.WAITING.value)
    )
    job_ids = list(result.scalars().all())
    for job_id in job_ids:
        _schedule(job_id)
    logger.info(f"Queue {queue} resumed with {len(job_ids)} waiting job(s)")
    return len(job_ids)


async def clean(session: AsyncSession, queue: str, status: str) -> int:
    """Delete finished jobs with the given status. Returns the number removed."""
    _check_queue(queue)
    if status not in CLEANABLE_STATUSES:
        raise BadRequestError(
            f"Cannot clean jobs with status {status}",
            message_key="queue.invalid_clean_status",
        )
    result = await session.execute(
        delete(JobRecord).where(JobRecord.queue == queue, JobRecord.status == status)
    )
    await session.flush()
    logger.info(f"Cleaned {result.rowcount} {status} job(s) from {queue}")
    return result.rowcount
