"""Tests for per-habit analytics and garden statistics."""

import pytest
from datetime import date, timedelta
from types import SimpleNamespace

from app.schemas.habits import HabitCreate, HabitLogCreate, HabitUpdate
from app.services import habit_analytics as analytics
from app.services.cache import CacheService, garden_stats_key
from app.services.habits import create_habit, log_habit, update_habit

TODAY = date(2025, 3, 5)  # a Wednesday


def _log(day: date, status: str = "completed", habit_id: int = 1):
    return SimpleNamespace(date=day, status=status, habit_id=habit_id)


class TestCalendarHelpers:

    def test_week_starts_on_sunday(self):
        assert analytics.week_start(TODAY) == date(2025, 3, 2)
        assert analytics.week_start(date(2025, 3, 2)) == date(2025, 3, 2)

    def test_shift_month_across_years(self):
        assert analytics.shift_month(2025, 1, -1) == (2024, 12)
        assert analytics.shift_month(2024, 11, 3) == (2025, 2)

    def test_month_bounds(self):
        assert analytics.month_bounds(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))


class TestProgressSeries:

    def test_habit_progress_counts(self):
        logs = [_log(TODAY, "completed"), _log(TODAY, "partial"), _log(TODAY, "missed"), _log(TODAY, "skipped")]
        progress = analytics.habit_progress(logs)
        assert progress == {
            "total_days": 4,
            "completed_days": 1,
            "partial_days": 1,
            "missed_days": 1,
            "skipped_days": 1,
            "completion_rate": 25,
        }

    def test_weekly_progress_has_four_sunday_weeks(self):
        logs = [_log(date(2025, 3, 2)), _log(date(2025, 3, 3), "partial"), _log(date(2025, 2, 23), "missed")]
        weeks = analytics.weekly_progress(logs, TODAY)
        assert [w["week_start"] for w in weeks] == ["2025-02-09", "2025-02-16", "2025-02-23", "2025-03-02"]
        assert weeks[-1]["completed_days"] == 2
        assert weeks[-1]["completion_rate"] == 29
        assert weeks[-2]["completed_days"] == 0

    def test_monthly_progress_labels(self):
        months = analytics.monthly_progress([_log(date(2025, 2, 10))], TODAY)
        assert [m["month"] for m in months] == [
            "October 2024", "November 2024", "December 2024",
            "January 2025", "February 2025", "March 2025",
        ]
        assert months[4]["total_days"] == 28
        assert months[4]["completion_rate"] == 4

    def test_day_of_week_ties_go_to_earlier_day(self):
        logs = [
            _log(date(2025, 3, 2)),            # Sunday
            _log(date(2025, 3, 3)),            # Monday
            _log(date(2025, 3, 4), "missed"),  # Tuesday
        ]
        stats = analytics.day_of_week_stats(logs)
        assert stats["best_day_of_week"] == "Sunday"
        assert stats["best_day_rate"] == 100
        assert stats["worst_day_of_week"] == "Tuesday"
        assert stats["worst_day_rate"] == 0


async def _plant(session, user, title="Read", **fields):
    return await create_habit(session, user.id, HabitCreate(title=title, **fields), today=date(2025, 2, 1))


async def _record(session, user, habit, day, status="completed"):
    await log_habit(session, user.id, HabitLogCreate(habit_id=habit.id, date=day, status=status), fire_triggers=False)


class TestHabitAnalytics:

    @pytest.mark.asyncio
    async def test_no_logs(self, async_session, user):
        habit = await _plant(async_session, user)
        result = await analytics.get_habit_analytics(async_session, habit.id, user.id, TODAY)
        assert result["progress"]["total_days"] == 0
        assert result["weekly_progress"] == []
        assert result["best_day_of_week"] == "N/A"
        assert result["worst_day_of_week"] == "N/A"

    @pytest.mark.asyncio
    async def test_with_logs(self, async_session, user):
        habit = await _plant(async_session, user)
        for offset in range(3):
            await _record(async_session, user, habit, TODAY - timedelta(days=offset))

        result = await analytics.get_habit_analytics(async_session, habit.id, user.id, TODAY)
        assert result["progress"]["completion_rate"] == 100
        assert result["streak"]["current_streak"] == 3
        assert result["streak"]["streak_start_date"] == "2025-03-03"
        assert len(result["weekly_progress"]) == 4
        assert len(result["monthly_progress"]) == 6


class TestGardenStats:

    @pytest.mark.asyncio
    async def test_empty_garden(self, async_session, user):
        stats = await analytics.get_garden_stats(async_session, user.id, TODAY)
        assert stats["total_habits"] == 0
        assert stats["garden_mood"]["mood_level"] == "empty"
        assert stats["top_habits"] == []

    @pytest.mark.asyncio
    async def test_today_and_attention(self, async_session, user):
        reading = await _plant(async_session, user, "Read", category="learning")
        running = await _plant(async_session, user, "Run", category="fitness")
        await _record(async_session, user, reading, TODAY)
        await _record(async_session, user, running, TODAY - timedelta(days=2), "completed")
        await _record(async_session, user, running, TODAY - timedelta(days=1), "missed")
        await _record(async_session, user, running, TODAY, "missed")

        stats = await analytics.get_garden_stats(async_session, user.id, TODAY)
        assert stats["total_habits"] == 2
        assert stats["completed_today"] == 1
        assert stats["missed_today"] == 1
        assert stats["today_completion_rate"] == 50
        assert stats["garden_mood"]["mood_level"] == "fair"
        assert stats["top_habits"][0]["title"] == "Read"
        assert [h["title"] for h in stats["needs_attention"]] == ["Run"]
        assert stats["needs_attention"][0]["days_since_last_completed"] == 2
        assert {c["category"] for c in stats["habits_by_category"]} == {"learning", "fitness"}
        assert len(stats["weekly_trend"]) == 4
        assert len(stats["monthly_trend"]) == 6

    @pytest.mark.asyncio
    async def test_stats_are_cached_until_a_log(self, async_session, user):
        habit = await _plant(async_session, user)
        first = await analytics.get_garden_stats(async_session, user.id, TODAY)
        assert first["completed_today"] == 0
        assert await CacheService(async_session).exists(garden_stats_key(user.id))

        await _record(async_session, user, habit, TODAY)
        second = await analytics.get_garden_stats(async_session, user.id, TODAY)
        assert second["completed_today"] == 1

    @pytest.mark.asyncio
    async def test_planting_and_editing_refresh_cached_stats(self, async_session, user):
        first = await _plant(async_session, user)
        assert (await analytics.get_garden_stats(async_session, user.id, TODAY))["total_habits"] == 1

        await create_habit(async_session, user.id, HabitCreate(title="Stretch"), today=TODAY)
        assert (await analytics.get_garden_stats(async_session, user.id, TODAY))["total_habits"] == 2

        await update_habit(async_session, first.id, user.id, HabitUpdate(is_active=False))
        assert (await analytics.get_garden_stats(async_session, user.id, TODAY))["total_habits"] == 1
