"""Calendar and task-manager integrations, plus the sync bookkeeping shared
with smart-home integrations.

Provider APIs are not called: a sync validates the stored credentials,
records when it ran and schedules the next run a day later.
"""

import logging
import uuid
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BadRequestError, ConflictError, NotFoundError
from app.models.habit import Habit
from app.models.integration import (
    CalendarIntegration,
    DEFAULT_CALENDAR_SETTINGS,
    DEFAULT_TASK_SETTINGS,
    SmartHomeIntegration,
    SyncStatus,
    TASK_PRIORITY_RANK,
    TaskIntegration,
)
from app.schemas.common import to_naive_utc
from app.schemas.habits import HabitCreate
from app.schemas.integrations import (
    CalendarEventCreate,
    CalendarIntegrationCreate,
    ExternalTask,
    TaskIntegrationCreate,
)
from app.services.habits import create_habit

logger = logging.getLogger(__name__)

SYNC_INTERVAL = timedelta(hours=24)
SYNC_RETRY_INTERVAL = timedelta(hours=1)
MAX_SYNC_ERRORS = 10

KIND_LABELS = {
    CalendarIntegration: "Calendar",
    TaskIntegration: "Task",
    SmartHomeIntegration: "Smart home",
}


# Shared helpers

async def get_owned(session: AsyncSession, model, integration_id: int, user_id: int):
    result = await session.execute(
        select(model).where(model.id == integration_id, model.user_id == user_id)
    )
    integration = result.scalar_one_or_none()
    if integration is None:
        kind = KIND_LABELS[model]
        raise NotFoundError(
            f"{kind} integration {integration_id} not found",
            message_key="integration.not_found",
            kind=kind,
        )
    return integration


async def ensure_unique_provider(session: AsyncSession, model, user_id: int, provider: str) -> None:
    result = await session.execute(
        select(model.id).where(model.user_id == user_id, model.provider == provider)
    )
    if result.first() is not None:
        kind = KIND_LABELS[model]
        raise ConflictError(
            f"{kind} integration for {provider} already exists",
            message_key="integration.already_exists",
            kind=kind,
            provider=provider,
        )


async def list_active(session: AsyncSession, model, user_id: int) -> list:
    result = await session.execute(
        select(model)
        .where(model.user_id == user_id, model.is_active.is_(True))
        .order_by(model.created_at.desc(), model.id.desc())
    )
    return list(result.scalars().all())


async def list_all_active(session: AsyncSession, model) -> list:
    result = await session.execute(select(model).where(model.is_active.is_(True)))
    return list(result.scalars().all())


def apply_changes(integration, changes: dict) -> None:
    if "metadata" in changes:
        integration.meta = changes.pop("metadata")
    if "sync_settings" in changes and changes["sync_settings"] is not None:
        changes["sync_settings"] = {**(integration.sync_settings or {}), **changes["sync_settings"]}
    for key, value in changes.items():
        setattr(integration, key, value)


async def update_integration(session: AsyncSession, model, integration_id: int, user_id: int, changes: dict):
    integration = await get_owned(session, model, integration_id, user_id)
    apply_changes(integration, changes)
    await session.flush()
    await session.refresh(integration)
    return integration


async def delete_integration(session: AsyncSession, model, integration_id: int, user_id: int) -> None:
    integration = await get_owned(session, model, integration_id, user_id)
    await session.delete(integration)
    await session.flush()
    logger.info(f"User {user_id} removed {KIND_LABELS[model].lower()} integration {integration_id}")


def _check_credentials(integration, now: datetime) -> None:
    expires_at = (integration.credentials or {}).get("expires_at")
    if not expires_at:
        return
    try:
        expires_at = to_naive_utc(datetime.fromisoformat(str(expires_at)))
    except ValueError:
        raise BadRequestError(
            f"Credentials for {integration.provider} carry an invalid expiry: {expires_at!r}",
            message_key="integration.credentials_invalid",
            provider=integration.provider,
        )
    if expires_at <= now:
        raise BadRequestError(
            f"Credentials for {integration.provider} have expired",
            message_key="integration.credentials_expired",
            provider=integration.provider,
        )


async def run_sync(
    session: AsyncSession,
    integration,
    work: Optional[Callable[[object], Awaitable[None]]] = None,
    now: Optional[datetime] = None,
):
    """Run one sync and record the outcome on the integration.

    A failure marks the integration as errored, appends the message to
    ``metadata.sync_errors`` (keeping the last ``MAX_SYNC_ERRORS``), pushes
    ``next_sync_at`` back by ``SYNC_RETRY_INTERVAL`` and commits that state
    before re-raising.
    """
    now = now or datetime.utcnow()
    try:
        _check_credentials(integration, now)
        if work is not None:
            await work(integration)
    except Exception as e:
        meta = dict(integration.meta or {})
        errors = [*meta.get("sync_errors", []), f"{now.isoformat()}: {e}"]
        meta["sync_errors"] = errors[-MAX_SYNC_ERRORS:]
        integration.meta = meta
        integration.sync_status = SyncStatus.ERROR.value
        integration.next_sync_at = now + SYNC_RETRY_INTERVAL
        await session.commit()
        logger.error(f"Sync failed for {integration.provider} integration {integration.id}: {e}")
        raise

    meta = dict(integration.meta or {})
    meta["last_sync_at"] = now.isoformat()
    integration.meta = meta
    integration.sync_status = SyncStatus.ACTIVE.value
    integration.last_sync_at = now
    integration.next_sync_at = now + SYNC_INTERVAL
    await session.flush()
    logger.info(f"Synced {integration.provider} integration {integration.id}")
    return integration


def sync_status(integration) -> dict:
    meta = integration.meta or {}
    status = {
        "status": integration.sync_status,
        "last_sync": integration.last_sync_at,
        "next_sync": integration.next_sync_at,
        "error_count": len(meta.get("sync_errors", [])),
    }
    if isinstance(integration, TaskIntegration):
        status["task_count"] = meta.get("task_count", 0)
    if isinstance(integration, SmartHomeIntegration):
        status["device_count"] = len(integration.devices or [])
    return status


async def due_for_sync(session: AsyncSession, model, now: Optional[datetime] = None) -> list:
    """Active integrations whose next sync time has passed (or was never set)."""
    now = now or datetime.utcnow()
    result = await session.execute(
        select(model).where(
            model.is_active.is_(True),
            model.sync_status != SyncStatus.PAUSED.value,
            (model.next_sync_at.is_(None)) | (model.next_sync_at <= now),
        )
    )
    return list(result.scalars().all())


# Calendar

async def create_calendar(session: AsyncSession, user_id: int, data: CalendarIntegrationCreate) -> CalendarIntegration:
    await ensure_unique_provider(session, CalendarIntegration, user_id, data.provider)
    integration = CalendarIntegration(
        user_id=user_id,
        sync_status=SyncStatus.ACTIVE.value,
        sync_settings={**DEFAULT_CALENDAR_SETTINGS, **(data.sync_settings or {})},
        meta={"sync_errors": [], "event_count": 0, **(data.metadata or {})},
        **data.model_dump(exclude={"sync_settings", "metadata"}),
    )
    session.add(integration)
    await session.flush()
    await session.refresh(integration)
    logger.info(f"User {user_id} linked {data.provider} calendar")
    return integration


async def sync_calendar(session: AsyncSession, integration_id: int, user_id: int) -> CalendarIntegration:
    integration = await get_owned(session, CalendarIntegration, integration_id, user_id)
    return await run_sync(session, integration)


async def create_calendar_event(
    session: AsyncSession,
    integration_id: int,
    user_id: int,
    event: CalendarEventCreate,
) -> Optional[dict]:
    """Build a calendar event for a habit. Returns None when auto-create is off."""
    integration = await get_owned(session, CalendarIntegration, integration_id, user_id)
    settings = {**DEFAULT_CALENDAR_SETTINGS, **(integration.sync_settings or {})}
    if not settings.get("auto_create_events"):
        return None

    end_time = event.end_time or event.start_time + timedelta(minutes=settings["event_duration"])
    created = {
        "id": f"evt_{uuid.uuid4().hex[:12]}",
        "calendar_id": integration.external_calendar_id,
        "title": event.title,
        "description": event.description,
        "start_time": event.start_time.isoformat(),
        "end_time": end_time.isoformat(),
        "event_type": event.event_type,
        "habit_id": event.habit_id,
        "buffer_minutes": settings["buffer_time"],
    }

    meta = dict(integration.meta or {})
    meta["event_count"] = meta.get("event_count", 0) + 1
    integration.meta = meta
    await session.flush()
    return created


# Tasks

async def create_task_integration(session: AsyncSession, user_id: int, data: TaskIntegrationCreate) -> TaskIntegration:
    await ensure_unique_provider(session, TaskIntegration, user_id, data.provider)
    settings = {**DEFAULT_TASK_SETTINGS, **(data.sync_settings or {})}
    settings["habit_creation_rules"] = {
        **DEFAULT_TASK_SETTINGS["habit_creation_rules"],
        **((data.sync_settings or {}).get("habit_creation_rules") or {}),
    }
    integration = TaskIntegration(
        user_id=user_id,
        sync_status=SyncStatus.ACTIVE.value,
        sync_settings=settings,
        meta={"sync_errors": [], "task_count": 0, **(data.metadata or {})},
        **data.model_dump(exclude={"sync_settings", "metadata"}),
    )
    session.add(integration)
    await session.flush()
    await session.refresh(integration)
    logger.info(f"User {user_id} linked {data.provider} project")
    return integration


async def sync_tasks(session: AsyncSession, integration_id: int, user_id: int) -> TaskIntegration:
    integration = await get_owned(session, TaskIntegration, integration_id, user_id)
    return await run_sync(session, integration)


async def create_habit_from_task(
    session: AsyncSession,
    integration_id: int,
    user_id: int,
    task: ExternalTask,
) -> Habit:
    integration = await get_owned(session, TaskIntegration, integration_id, user_id)
    settings = integration.sync_settings or {}
    if not settings.get("auto_create_habits"):
        raise BadRequestError(
            "Auto-create habits is disabled for this integration",
            message_key="integration.auto_create_disabled",
        )

    rules = {**DEFAULT_TASK_SETTINGS["habit_creation_rules"], **(settings.get("habit_creation_rules") or {})}
    threshold = TASK_PRIORITY_RANK.get(rules["priority_threshold"], TASK_PRIORITY_RANK["medium"])
    if TASK_PRIORITY_RANK[task.priority] < threshold:
        raise BadRequestError(
            "Task priority is below the habit creation threshold",
            message_key="integration.priority_below_threshold",
        )

    tags = [*rules.get("tags", []), *task.tags]
    description = task.description or ""
    if tags:
        description = f"{description}\n\nTags: {', '.join(tags)}".strip()

    habit = await create_habit(
        session,
        user_id,
        HabitCreate(
            title=task.title,
            description=description or None,
            category="productivity",
            frequency=rules.get("frequency", "daily"),
            reminders=[{"type": "task", "duration_minutes": rules.get("task_duration", 30)}],
        ),
    )

    meta = dict(integration.meta or {})
    meta["habits_created"] = meta.get("habits_created", 0) + 1
    meta["task_count"] = meta.get("task_count", 0) + 1
    integration.meta = meta
    await session.flush()
    logger.info(f"Created habit {habit.id} from {integration.provider} task {task.external_id}")
    return habit


async def task_stats(session: AsyncSession, user_id: int) -> dict:
    result = await session.execute(select(TaskIntegration).where(TaskIntegration.user_id == user_id))
    integrations = list(result.scalars().all())
    synced = [i.last_sync_at for i in integrations if i.last_sync_at]
    return {
        "total_integrations": len(integrations),
        "active_integrations": sum(1 for i in integrations if i.is_active),
        "total_tasks": sum((i.meta or {}).get("task_count", 0) for i in integrations),
        "last_sync": max(synced) if synced else None,
    }


async def overview(session: AsyncSession, user_id: int) -> dict:
    """Counts of each integration kind for the user."""
    summary = {}
    for key, model in (
        ("calendar", CalendarIntegration),
        ("tasks", TaskIntegration),
        ("smart_home", SmartHomeIntegration),
    ):
        result = await session.execute(select(model).where(model.user_id == user_id))
        items = list(result.scalars().all())
        summary[key] = {
            "total": len(items),
            "active": sum(1 for i in items if i.is_active),
            "errored": sum(1 for i in items if i.sync_status == SyncStatus.ERROR.value),
        }
    summary["total_integrations"] = sum(v["total"] for v in summary.values())
    return summary
