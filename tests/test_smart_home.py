"""Tests for smart-home integrations and automation rules.

Webhook delivery is patched out; rules without a webhook just report
their actions as executed.
"""

import pytest
from datetime import date
from unittest.mock import AsyncMock, patch

import httpx

from app.core.exceptions import NotFoundError
from app.schemas.habits import HabitCreate, HabitLogCreate
from app.schemas.integrations import (
    AutomationRuleCreate,
    AutomationRuleUpdate,
    SmartHomeIntegrationCreate,
)
from app.services import smart_home
from app.services.habits import create_habit, log_habit


def _rule(name="Lights on", trigger_type="habit_complete", priority=0, **fields):
    return AutomationRuleCreate(
        name=name,
        trigger_type=trigger_type,
        priority=priority,
        actions=fields.pop("actions", [{"device_id": "hue_light_1", "action_type": "turn_on", "delay": 30}]),
        **fields,
    )


async def _link(session, user, rules=None, **fields):
    data = SmartHomeIntegrationCreate(
        provider=fields.pop("provider", "philips_hue"),
        external_account_id="acct-1",
        account_name="Home",
        automation_rules=rules,
        **fields,
    )
    return await smart_home.create_smart_home(session, user.id, data)


class TestConditions:

    def test_missing_keys_match(self):
        assert smart_home.conditions_match({}, {"habit_id": 1})
        assert smart_home.conditions_match({"habit_id": 1}, {})
        assert smart_home.conditions_match(None, {"habit_id": 1})

    def test_values_compared_as_strings(self):
        assert smart_home.conditions_match({"habit_id": "4"}, {"habit_id": 4})
        assert not smart_home.conditions_match({"habit_id": 4}, {"habit_id": 5})


class TestRules:

    @pytest.mark.asyncio
    async def test_rules_sorted_by_priority(self, async_session, user):
        integration = await _link(async_session, user, [_rule("low", priority=1), _rule("high", priority=5)])
        assert [r["name"] for r in integration.automation_rules] == ["high", "low"]
        assert integration.meta["automation_count"] == 2
        assert integration.automation_rules[0]["id"].startswith("rule_")

    @pytest.mark.asyncio
    async def test_add_update_delete(self, async_session, user):
        integration = await _link(async_session, user)
        rule = await smart_home.add_rule(async_session, integration.id, user.id, _rule())
        updated = await smart_home.update_rule(
            async_session, integration.id, user.id, rule["id"], AutomationRuleUpdate(is_active=False)
        )
        assert updated["is_active"] is False
        assert updated["name"] == "Lights on"

        await smart_home.delete_rule(async_session, integration.id, user.id, rule["id"])
        assert integration.automation_rules == []
        with pytest.raises(NotFoundError):
            await smart_home.delete_rule(async_session, integration.id, user.id, rule["id"])

    @pytest.mark.asyncio
    async def test_sync_pulls_provider_devices(self, async_session, user):
        integration = await _link(async_session, user)
        await smart_home.sync_smart_home(async_session, integration.id, user.id)
        assert [d["id"] for d in integration.devices] == ["hue_light_1", "hue_light_2"]
        assert integration.meta["device_count"] == 2
        assert integration.last_sync_at is not None


class TestTriggers:

    @pytest.mark.asyncio
    async def test_matching_rules_run_and_count(self, async_session, user):
        integration = await _link(async_session, user, [
            _rule("for habit 1", trigger_conditions={"habit_id": 1}),
            _rule("for habit 2", trigger_conditions={"habit_id": 2}),
            _rule("on miss", trigger_type="habit_missed"),
        ])

        result = await smart_home.trigger_automation(
            async_session, integration.id, user.id, "habit_complete", {"habit_id": 1}
        )

        assert result["triggered_rules"] == 1
        action = result["results"][0]["actions"][0]
        assert action["status"] == "executed"
        assert action["delay"] == 30
        fired = [r for r in integration.automation_rules if r["name"] == "for habit 1"][0]
        assert fired["trigger_count"] == 1
        assert fired["last_triggered"] is not None

    @pytest.mark.asyncio
    async def test_inactive_rule_is_skipped(self, async_session, user):
        integration = await _link(async_session, user, [_rule(is_active=False)])
        result = await smart_home.trigger_automation(async_session, integration.id, user.id, "habit_complete", {})
        assert result["triggered_rules"] == 0

    @pytest.mark.asyncio
    async def test_webhook_delivery(self, async_session, user):
        integration = await _link(
            async_session, user, [_rule()], credentials={"webhook_url": "https://hooks.example.com/home"}
        )
        with patch("app.services.smart_home._deliver_action", new_callable=AsyncMock) as deliver:
            result = await smart_home.trigger_automation(
                async_session, integration.id, user.id, "habit_complete", {"habit_id": 9}
            )

        deliver.assert_awaited_once()
        url, payload = deliver.await_args.args[1:]
        assert url == "https://hooks.example.com/home"
        assert payload["trigger"] == {"habit_id": 9}
        assert result["results"][0]["actions"][0]["status"] == "delivered"

    @pytest.mark.asyncio
    async def test_failed_delivery_is_reported(self, async_session, user):
        integration = await _link(
            async_session, user, [_rule()], credentials={"webhook_url": "https://hooks.example.com/home"}
        )
        failing = AsyncMock(side_effect=httpx.ConnectError("refused"))
        with patch("app.services.smart_home._deliver_action", failing):
            result = await smart_home.trigger_automation(
                async_session, integration.id, user.id, "habit_complete", {}
            )

        action = result["results"][0]["actions"][0]
        assert action["status"] == "failed"
        assert "refused" in action["error"]

    @pytest.mark.asyncio
    async def test_logging_a_habit_fires_rules(self, async_session, user):
        integration = await _link(async_session, user, [
            _rule("done"),
            _rule("week", trigger_type="streak_milestone"),
        ])
        habit = await create_habit(async_session, user.id, HabitCreate(title="Yoga"), today=date(2025, 3, 1))
        await log_habit(async_session, user.id, HabitLogCreate(habit_id=habit.id, date=date(2025, 3, 1)))

        counts = {r["name"]: r["trigger_count"] for r in integration.automation_rules}
        assert counts == {"done": 1, "week": 0}

    @pytest.mark.asyncio
    async def test_dashboard(self, async_session, user):
        await _link(async_session, user, [_rule(), _rule("off", is_active=False)])
        summary = await smart_home.dashboard(async_session, user.id)
        assert summary["total_integrations"] == 1
        assert summary["total_automations"] == 2
        assert summary["active_automations"] == 1
        assert summary["total_triggers"] == 0
