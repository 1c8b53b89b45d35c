"""Job handlers for the background queue.

Each handler takes ``(session, data)`` and returns a JSON-serialisable
result. Raising marks the attempt as failed so the queue can retry it.
"""

import logging
from datetime import date, datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BloomhabitError
from app.models.habit import Habit, HabitLog
from app.models.integration import CalendarIntegration, SmartHomeIntegration, TaskIntegration
from app.models.user import User
from app.models.wearable import HealthData
from app.services import ai, health_data, integrations, smart_home
from app.services.export import export_rows
from app.services.habit_analytics import get_garden_stats
from app.services.habits import list_habits

logger = logging.getLogger(__name__)


# Notifications

def _delivery(channel: str, data: dict) -> dict:
    now = datetime.utcnow()
    return {
        "success": True,
        "message_id": f"{channel}_{int(now.timestamp() * 1000)}_{data.get('user_id', 'anon')}",
        "sent_at": now.isoformat(),
    }


async def send_email(session: AsyncSession, data: dict) -> dict:
    logger.info(f"Sending email to {data.get('to')}: {data.get('subject')}")
    return _delivery("email", data)


async def send_push(session: AsyncSession, data: dict) -> dict:
    logger.info(f"Sending push notification to user {data.get('user_id')}: {data.get('title')}")
    return _delivery("push", data)


async def send_sms(session: AsyncSession, data: dict) -> dict:
    logger.info(f"Sending SMS to {data.get('phone_number')}")
    return _delivery("sms", data)


async def send_in_app(session: AsyncSession, data: dict) -> dict:
    logger.info(f"Sending in-app notification to user {data.get('user_id')}: {data.get('title')}")
    return _delivery("in_app", data)


# Data sync

async def _sync_all(session: AsyncSession, data: dict, model, sync_one) -> dict:
    user_id = data["user_id"]
    synced, failed = 0, 0
    for integration in await integrations.list_active(session, model, user_id):
        try:
            await sync_one(session, integration.id, user_id)
            synced += 1
        except BloomhabitError as e:
            logger.warning(f"Skipping {integration.provider} integration {integration.id}: {e.message}")
            failed += 1
    return {"success": True, "synced_items": synced, "failed_items": failed, "synced_at": datetime.utcnow().isoformat()}


async def sync_calendar(session: AsyncSession, data: dict) -> dict:
    return await _sync_all(session, data, CalendarIntegration, integrations.sync_calendar)


async def sync_tasks(session: AsyncSession, data: dict) -> dict:
    return await _sync_all(session, data, TaskIntegration, integrations.sync_tasks)


async def sync_smart_home(session: AsyncSession, data: dict) -> dict:
    return await _sync_all(session, data, SmartHomeIntegration, smart_home.sync_smart_home)


async def export_data(session: AsyncSession, data: dict) -> dict:
    start = date.fromisoformat(data["start"]) if data.get("start") else None
    end = date.fromisoformat(data["end"]) if data.get("end") else None
    rows = await export_rows(session, data["user_id"], start, end)
    return {"success": True, "format": data.get("format", "json"), "rows": len(rows)}


# Analytics

async def user_analytics(session: AsyncSession, data: dict) -> dict:
    stats = await get_garden_stats(session, data["user_id"], use_cache=False)
    return {"success": True, "total_habits": stats["total_habits"], "mood": stats["garden_mood"]["mood_level"]}


async def system_analytics(session: AsyncSession, data: dict) -> dict:
    counts = {}
    for key, model in (("users", User), ("habits", Habit), ("habit_logs", HabitLog), ("health_data", HealthData)):
        counts[key] = (await session.execute(select(func.count(model.id)))).scalar_one()
    return {"success": True, **counts, "generated_at": datetime.utcnow().isoformat()}


async def report_generation(session: AsyncSession, data: dict) -> dict:
    user_id = data["user_id"]
    today = date.fromisoformat(data["date"]) if data.get("date") else date.today()
    habits = await list_habits(session, user_id)
    result = await session.execute(
        select(HabitLog).where(
            HabitLog.user_id == user_id,
            HabitLog.date > today - timedelta(days=7),
            HabitLog.date <= today,
        )
    )
    return {
        "success": True,
        "weekly_stats": ai.weekly_stats(habits, list(result.scalars().all())),
        "achievements": ai.achievements(habits),
    }


async def data_aggregation(session: AsyncSession, data: dict) -> dict:
    summary = await health_data.summary(session, data["user_id"])
    return {"success": True, "total_records": summary["total_records"], "by_type": summary["by_type"]}


HANDLERS = {
    "default": {},
    "notifications": {
        "send-email": send_email,
        "send-push": send_push,
        "send-sms": send_sms,
        "send-in-app": send_in_app,
    },
    "data-sync": {
        "sync-calendar": sync_calendar,
        "sync-tasks": sync_tasks,
        "sync-smart-home": sync_smart_home,
        "export-data": export_data,
    },
    "analytics": {
        "user-analytics": user_analytics,
        "system-analytics": system_analytics,
        "report-generation": report_generation,
        "data-aggregation": data_aggregation,
    },
}
