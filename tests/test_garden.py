"""Tests for the pure garden scoring functions."""

from datetime import date, timedelta
from types import SimpleNamespace

from app.services import garden


def _logs(start: date, statuses: list[str], step: int = 1):
    return [
        SimpleNamespace(date=start + timedelta(days=i * step), status=status)
        for i, status in enumerate(statuses)
    ]


class TestStreaks:

    def test_consecutive_completions_build_a_streak(self):
        result = garden.compute_streaks(_logs(date(2025, 1, 1), ["completed"] * 4))
        assert result.current == 4
        assert result.longest == 4
        assert result.start_date == date(2025, 1, 1)
        assert result.per_log[date(2025, 1, 3)] == 3

    def test_partial_extends_and_missed_breaks(self):
        logs = _logs(date(2025, 1, 1), ["completed", "partial", "missed", "completed"])
        result = garden.compute_streaks(logs)
        assert result.longest == 2
        assert result.current == 1
        assert result.start_date == date(2025, 1, 4)
        assert result.per_log[date(2025, 1, 3)] == 0

    def test_skipped_is_neutral(self):
        logs = _logs(date(2025, 1, 1), ["completed", "skipped", "completed"])
        result = garden.compute_streaks(logs)
        assert result.current == 2
        assert result.per_log[date(2025, 1, 2)] == 1

    def test_gap_longer_than_period_breaks_streak(self):
        logs = [
            SimpleNamespace(date=date(2025, 1, 1), status="completed"),
            SimpleNamespace(date=date(2025, 1, 2), status="completed"),
            SimpleNamespace(date=date(2025, 1, 5), status="completed"),
        ]
        result = garden.compute_streaks(logs, max_gap=1)
        assert result.current == 1
        assert result.longest == 2

    def test_weekly_gap_keeps_streak(self):
        logs = _logs(date(2025, 1, 1), ["completed"] * 3, step=7)
        result = garden.compute_streaks(logs, max_gap=garden.streak_gap_days("weekly"))
        assert result.current == 3

    def test_no_logs(self):
        result = garden.compute_streaks([])
        assert result.current == 0
        assert result.longest == 0
        assert result.start_date is None


class TestStreakGap:

    def test_known_frequencies(self):
        assert garden.streak_gap_days("daily") == 1
        assert garden.streak_gap_days("weekly") == 7
        assert garden.streak_gap_days("monthly") == 31

    def test_custom_interval(self):
        assert garden.streak_gap_days("custom", {"custom_interval": 3}) == 3
        assert garden.streak_gap_days("custom", {}) == 1
        assert garden.streak_gap_days("custom", None) == 1


class TestReplay:

    def test_fresh_flower(self):
        state = garden.replay_garden([])
        assert state.health_points == 100
        assert state.water_level == 0
        assert state.total_completions == 0

    def test_status_effects_are_clamped(self):
        state = garden.replay_garden(["completed"] * 6)
        assert state.water_level == 100
        assert state.health_points == 100
        assert state.total_completions == 6

    def test_missed_drains_health_and_water(self):
        state = garden.replay_garden(["completed", "missed", "missed"])
        assert state.water_level == 0
        assert state.health_points == 100 - 15 - 15

    def test_partial_counts_half(self):
        state = garden.replay_garden(["missed", "partial"])
        assert state.water_level == 10
        assert state.health_points == 87


class TestGrowth:

    def test_default_period_is_thirty_days(self):
        assert garden.growth_percentage(15, 1) == 50

    def test_uses_start_and_end_dates(self):
        assert garden.growth_percentage(5, 1, date(2025, 1, 1), date(2025, 1, 11)) == 50

    def test_target_count_scales_expectation(self):
        assert garden.growth_percentage(15, 2) == 25

    def test_caps_at_one_hundred(self):
        assert garden.growth_percentage(100, 1) == 100

    def test_labels(self):
        assert garden.growth_label(0) == "seed"
        assert garden.growth_label(20) == "sprout"
        assert garden.growth_label(59) == "growing"
        assert garden.growth_label(79) == "blooming"
        assert garden.growth_label(80) == "fully_bloomed"

    def test_flags(self):
        assert garden.is_blooming(80, 81)
        assert not garden.is_blooming(80, 80)
        assert garden.is_wilting(49)
        assert not garden.is_wilting(50)
        assert garden.needs_water(29)
        assert not garden.needs_water(30)


class TestPerfectDay:

    def test_requires_completed_and_target(self):
        assert garden.is_perfect_day("completed", 2, 2)
        assert not garden.is_perfect_day("completed", 1, 2)
        assert not garden.is_perfect_day("partial", 2, 2)


class TestMood:

    def test_empty_garden(self):
        mood = garden.garden_mood(0, 0, 0)
        assert mood["mood_level"] == "empty"
        assert mood["mood_score"] == 0

    def test_levels(self):
        assert garden.garden_mood(10, 9, 0)["mood_level"] == "excellent"
        assert garden.garden_mood(10, 7, 0)["mood_level"] == "good"
        assert garden.garden_mood(10, 4, 2)["mood_level"] == "fair"
        assert garden.garden_mood(10, 1, 0)["mood_level"] == "needs-care"

    def test_partial_counts_half(self):
        mood = garden.garden_mood(4, 2, 2)
        assert mood["mood_score"] == 75
        assert mood["mood_emoji"] == "🌻"

    def test_completion_rate(self):
        assert garden.completion_rate(1, 3) == 33
        assert garden.completion_rate(0, 0) == 0
