"""Smart-home integrations: device catalog sync and habit-driven automation rules."""

import logging
import uuid
from datetime import datetime
from typing import Optional

import httpx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.models.habit import Habit, HabitLog
from app.models.integration import SmartHomeIntegration, SyncStatus
from app.schemas.integrations import (
    AutomationRuleCreate,
    AutomationRuleUpdate,
    SmartHomeIntegrationCreate,
)
from app.services.integrations import ensure_unique_provider, get_owned, list_active, run_sync

logger = logging.getLogger(__name__)

WEBHOOK_TIMEOUT_SECONDS = 10.0
STREAK_MILESTONES = (7, 21, 30, 66, 100, 365)

# Devices each provider reports on sync
PROVIDER_DEVICES = {
    "philips_hue": [
        {"id": "hue_light_1", "name": "Living Room Light", "type": "light",
         "capabilities": ["on_off", "dimming", "color"], "room": "Living Room", "is_online": True},
        {"id": "hue_light_2", "name": "Bedroom Light", "type": "light",
         "capabilities": ["on_off", "dimming"], "room": "Bedroom", "is_online": True},
    ],
    "smart_things": [
        {"id": "st_switch_1", "name": "Kitchen Switch", "type": "switch",
         "capabilities": ["on_off"], "room": "Kitchen", "is_online": True},
    ],
    "home_assistant": [
        {"id": "ha_thermostat_1", "name": "Home Thermostat", "type": "thermostat",
         "capabilities": ["on_off", "set_temperature"], "room": "Hallway", "is_online": True},
    ],
}


def _new_rule(data: AutomationRuleCreate) -> dict:
    rule = data.model_dump()
    rule.update({
        "id": f"rule_{uuid.uuid4().hex[:12]}",
        "trigger_count": 0,
        "last_triggered": None,
        "created_at": datetime.utcnow().isoformat(),
    })
    return rule


def _sorted_rules(rules: list[dict]) -> list[dict]:
    return sorted(rules, key=lambda r: r.get("priority", 0), reverse=True)


def conditions_match(conditions: Optional[dict], data: dict) -> bool:
    """Every id/time condition present on both sides must be equal."""
    for key in ("habit_id", "goal_id", "time", "location"):
        expected = (conditions or {}).get(key)
        actual = data.get(key)
        if expected is not None and actual is not None and str(expected) != str(actual):
            return False
    return True


async def create_smart_home(
    session: AsyncSession,
    user_id: int,
    data: SmartHomeIntegrationCreate,
) -> SmartHomeIntegration:
    await ensure_unique_provider(session, SmartHomeIntegration, user_id, data.provider)
    rules = [_new_rule(rule) for rule in data.automation_rules or []]
    devices = [device.model_dump() for device in data.devices or []]
    integration = SmartHomeIntegration(
        user_id=user_id,
        provider=data.provider,
        external_account_id=data.external_account_id,
        account_name=data.account_name,
        account_description=data.account_description,
        account_icon=data.account_icon,
        credentials=data.credentials,
        devices=devices,
        automation_rules=_sorted_rules(rules),
        sync_status=SyncStatus.ACTIVE.value,
        meta={
            "sync_errors": [],
            "device_count": len(devices),
            "automation_count": len(rules),
            **(data.metadata or {}),
        },
    )
    session.add(integration)
    await session.flush()
    await session.refresh(integration)
    logger.info(f"User {user_id} linked {data.provider} smart home account")
    return integration


async def sync_smart_home(session: AsyncSession, integration_id: int, user_id: int) -> SmartHomeIntegration:
    integration = await get_owned(session, SmartHomeIntegration, integration_id, user_id)

    async def pull_devices(target: SmartHomeIntegration) -> None:
        now = datetime.utcnow().isoformat()
        devices = [{**device, "last_seen": now} for device in PROVIDER_DEVICES.get(target.provider, [])]
        target.devices = devices
        target.meta = {**(target.meta or {}), "device_count": len(devices)}

    return await run_sync(session, integration, pull_devices)


async def _save_rules(session: AsyncSession, integration: SmartHomeIntegration, rules: list[dict]) -> None:
    integration.automation_rules = _sorted_rules(rules)
    integration.meta = {**(integration.meta or {}), "automation_count": len(rules)}
    await session.flush()


def _find_rule(integration: SmartHomeIntegration, rule_id: str) -> dict:
    for rule in integration.automation_rules or []:
        if rule.get("id") == rule_id:
            return rule
    raise NotFoundError(f"Automation rule {rule_id} not found", message_key="integration.rule_not_found")


async def add_rule(
    session: AsyncSession,
    integration_id: int,
    user_id: int,
    data: AutomationRuleCreate,
) -> dict:
    integration = await get_owned(session, SmartHomeIntegration, integration_id, user_id)
    rule = _new_rule(data)
    await _save_rules(session, integration, [*(integration.automation_rules or []), rule])
    return rule


async def update_rule(
    session: AsyncSession,
    integration_id: int,
    user_id: int,
    rule_id: str,
    data: AutomationRuleUpdate,
) -> dict:
    integration = await get_owned(session, SmartHomeIntegration, integration_id, user_id)
    existing = _find_rule(integration, rule_id)
    updated = {**existing, **data.model_dump(exclude_unset=True)}
    rules = [updated if r.get("id") == rule_id else r for r in integration.automation_rules]
    await _save_rules(session, integration, rules)
    return updated


async def delete_rule(session: AsyncSession, integration_id: int, user_id: int, rule_id: str) -> None:
    integration = await get_owned(session, SmartHomeIntegration, integration_id, user_id)
    _find_rule(integration, rule_id)
    rules = [r for r in integration.automation_rules if r.get("id") != rule_id]
    await _save_rules(session, integration, rules)


async def _deliver_action(client: httpx.AsyncClient, webhook_url: str, payload: dict) -> None:
    response = await client.post(webhook_url, json=payload)
    response.raise_for_status()


async def _run_rule(integration: SmartHomeIntegration, rule: dict, data: dict) -> list[dict]:
    """Execute a rule's actions. Delays are reported, not waited on."""
    webhook_url = (integration.credentials or {}).get("webhook_url")
    outcomes = []
    client = httpx.AsyncClient(timeout=WEBHOOK_TIMEOUT_SECONDS) if webhook_url else None
    try:
        for action in rule.get("actions", []):
            outcome = {
                "device_id": action.get("device_id"),
                "action_type": action.get("action_type"),
                "parameters": action.get("parameters"),
                "delay": action.get("delay"),
                "status": "executed",
            }
            if client is not None:
                try:
                    await _deliver_action(client, webhook_url, {
                        "rule_id": rule["id"],
                        "provider": integration.provider,
                        "action": action,
                        "trigger": data,
                    })
                    outcome["status"] = "delivered"
                except httpx.HTTPError as e:
                    logger.error(f"Webhook delivery failed for rule {rule['id']}: {e}")
                    outcome["status"] = "failed"
                    outcome["error"] = str(e)
            outcomes.append(outcome)
    finally:
        if client is not None:
            await client.aclose()
    return outcomes


async def trigger_automation(
    session: AsyncSession,
    integration_id: int,
    user_id: int,
    trigger_type: str,
    data: dict,
) -> dict:
    integration = await get_owned(session, SmartHomeIntegration, integration_id, user_id)
    return await _trigger(session, integration, trigger_type, data)


async def _trigger(session: AsyncSession, integration: SmartHomeIntegration, trigger_type: str, data: dict) -> dict:
    now = datetime.utcnow().isoformat()
    rules = [dict(rule) for rule in integration.automation_rules or []]
    triggered = []

    for rule in _sorted_rules(rules):
        if not rule.get("is_active", True) or rule.get("trigger_type") != trigger_type:
            continue
        if not conditions_match(rule.get("trigger_conditions"), data):
            continue

        actions = await _run_rule(integration, rule, data)
        rule["last_triggered"] = now
        rule["trigger_count"] = rule.get("trigger_count", 0) + 1
        triggered.append({"rule_id": rule["id"], "name": rule.get("name"), "actions": actions})

    if triggered:
        await _save_rules(session, integration, rules)
        logger.info(f"Trigger {trigger_type} ran {len(triggered)} rule(s) on integration {integration.id}")

    return {"trigger_type": trigger_type, "triggered_rules": len(triggered), "results": triggered}


async def fire_event(session: AsyncSession, user_id: int, trigger_types: list[str], data: dict) -> list[dict]:
    """Run matching rules on each of the user's active smart-home integrations."""
    integrations = await list_active(session, SmartHomeIntegration, user_id)
    results = []
    for integration in integrations:
        for trigger_type in trigger_types:
            results.append(await _trigger(session, integration, trigger_type, data))
    return results


async def fire_habit_event(session: AsyncSession, user_id: int, habit: Habit, log: HabitLog) -> list[dict]:
    """Run the user's smart-home rules for a habit completion or miss."""
    data = {"habit_id": habit.id, "date": log.date.isoformat(), "streak": log.streak}
    trigger_types = ["habit_complete" if log.status == "completed" else "habit_missed"]
    if log.status == "completed" and log.streak in STREAK_MILESTONES:
        trigger_types.append("streak_milestone")
    return await fire_event(session, user_id, trigger_types, data)


async def dashboard(session: AsyncSession, user_id: int) -> dict:
    result = await session.execute(select(SmartHomeIntegration).where(SmartHomeIntegration.user_id == user_id))
    integrations = list(result.scalars().all())
    rules = [rule for i in integrations for rule in (i.automation_rules or [])]
    return {
        "total_integrations": len(integrations),
        "total_devices": sum(len(i.devices or []) for i in integrations),
        "total_automations": len(rules),
        "active_automations": sum(1 for r in rules if r.get("is_active", True)),
        "total_triggers": sum(r.get("trigger_count", 0) for r in rules),
    }
