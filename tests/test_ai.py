"""Tests for the AI gardener.

The OpenAI client is never called: either no key is configured and the
fallback text is used, or the completion call is patched.
"""

import pytest
from datetime import date
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

from openai import OpenAIError

from app.core.config import Settings
from app.core.exceptions import NotFoundError
from app.schemas.habits import HabitCreate, HabitLogCreate
from app.services import ai
from app.services.habits import create_habit, log_habit

TODAY = date(2025, 3, 7)


def _habit(**fields):
    values = {
        "title": "Read",
        "growth_stage": 0,
        "health_points": 100,
        "water_level": 0,
        "current_streak": 0,
        "longest_streak": 0,
        "is_active": True,
    }
    values.update(fields)
    return SimpleNamespace(**values)


@pytest.fixture
def no_api_key():
    with patch.object(ai, "get_settings", return_value=Settings(openai_api_key=None)):
        yield


class TestHeuristics:

    def test_garden_mood(self):
        assert ai.garden_mood([]) == "empty"
        assert ai.garden_mood([_habit(growth_stage=90)] * 3) == "blooming"
        assert ai.garden_mood([_habit(growth_stage=60), _habit(growth_stage=90)]) == "growing"
        assert ai.garden_mood([_habit(growth_stage=10), _habit(growth_stage=90)]) == "stable"
        assert ai.garden_mood([_habit(growth_stage=10)]) == "wilting"

    def test_recommendations_point_at_weak_habit(self):
        recs = ai.recommendations([_habit(title="Floss", health_points=40)])
        assert recs[0] == "Focus on nurturing your Floss habit first"
        assert "Consider adding a complementary habit to your garden" in recs

    def test_habit_analysis(self):
        habit = _habit(current_streak=7, longest_streak=7, growth_stage=80, health_points=90, water_level=100)
        analysis = ai.analyze_habit(habit)
        assert analysis["status"] == "blooming"
        assert analysis["strength"] == 30 + 24 + 18 + 20
        assert analysis["areas"] == []
        assert analysis["potential"] == "high"

    def test_achievements(self):
        found = ai.achievements([_habit(title="Run", current_streak=7, longest_streak=7)])
        assert "7-day streak with Run! 🎉" in found
        assert "Personal best streak with Run! 🏆" in found
        assert ai.achievements([]) == ["Getting started is an achievement in itself! 🌱"]

    def test_week_progress(self):
        logs = [
            SimpleNamespace(habit_id=1, status="completed"),
            SimpleNamespace(habit_id=1, status="partial"),
            SimpleNamespace(habit_id=2, status="missed"),
        ]
        progress = ai.week_progress([_habit(), _habit()], logs)
        assert progress == {"days_tracked": 7, "habits_completed": 1, "consistency_rate": 14}

    def test_parsers_drop_blank_lines(self):
        assert ai.parse_insights("One\n\nTwo")["key_points"] == ["One", "Two"]
        assert ai.parse_weekly_report("Intro\n\nBody\n\n")["sections"] == ["Intro", "Body"]


class TestFallbacks:

    def test_no_key_means_no_client(self, no_api_key):
        assert ai.get_client() is None

    @pytest.mark.asyncio
    async def test_garden_insights_without_key(self, async_session, user, no_api_key):
        result = await ai.garden_insights(async_session, user)
        assert result["ai_generated"] is False
        assert result["garden_mood"] == "empty"
        assert len(result["insights"]["key_points"]) == 3

    @pytest.mark.asyncio
    async def test_api_error_falls_back(self, async_session, user):
        client = MagicMock()
        client.chat.completions.create = AsyncMock(side_effect=OpenAIError("quota exceeded"))
        with patch.object(ai, "get_client", return_value=client):
            result = await ai.garden_insights(async_session, user)
        assert result["ai_generated"] is False

    @pytest.mark.asyncio
    async def test_coaching_for_missing_habit(self, async_session, user, no_api_key):
        with pytest.raises(NotFoundError):
            await ai.habit_coaching(async_session, 999, user)


class TestCompletions:

    @pytest.mark.asyncio
    async def test_coaching_uses_completion(self, async_session, user):
        habit = await create_habit(async_session, user.id, HabitCreate(title="Stretch"), today=TODAY)
        with patch.object(ai, "_complete", AsyncMock(return_value="Stretch after waking\nKeep it short")) as complete:
            result = await ai.habit_coaching(async_session, habit.id, user)

        assert complete.await_args.args[2] == ai.COACHING_MAX_TOKENS
        assert result["ai_generated"] is True
        assert result["coaching"]["key_tips"] == ["Stretch after waking", "Keep it short"]
        assert result["encouragement"].startswith("Every new beginning")

    @pytest.mark.asyncio
    async def test_weekly_report_counts_the_last_seven_days(self, async_session, user, no_api_key):
        habit = await create_habit(async_session, user.id, HabitCreate(title="Stretch"), today=date(2025, 2, 20))
        for day in (date(2025, 2, 28), date(2025, 3, 1), date(2025, 3, 7)):
            await log_habit(
                async_session, user.id, HabitLogCreate(habit_id=habit.id, date=day), fire_triggers=False
            )

        result = await ai.weekly_report(async_session, user, today=TODAY)

        progress = result["weekly_stats"]["week_progress"]
        # 2025-02-28 is outside the seven-day window ending 2025-03-07
        assert progress["consistency_rate"] == round(2 / 7 * 100)
        assert result["report"]["sections"] == ["Progress Summary", "Areas for Improvement", "Next Week Goals"]
        assert result["ai_generated"] is False
