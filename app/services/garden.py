"""Garden scoring - streaks, health, water and growth derived from a habit's logs.

Everything here is pure: callers pass logs (anything with ``date`` and
``status`` attributes) in date order and get numbers back. The habit's
stored garden fields are always a replay of its full log history, so
re-logging a day never double-counts.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional

MAX_POINTS = 100
DEFAULT_PERIOD_DAYS = 30

# status -> (water delta, health delta)
STATUS_EFFECTS = {
    "completed": (20, 5),
    "partial": (10, 2),
    "missed": (-20, -15),
    "skipped": (0, 0),
}

# Days allowed between two counted logs before the streak breaks
FREQUENCY_GAP_DAYS = {
    "daily": 1,
    "weekly": 7,
    "monthly": 31,
}

GROWTH_LABELS = [
    (20, "seed"),
    (40, "sprout"),
    (60, "growing"),
    (80, "blooming"),
]

MOOD_LEVELS = [
    (90, "excellent", "🌺", "Your garden is flourishing! Excellent work today!"),
    (70, "good", "🌻", "Your garden is growing well. Keep up the good work!"),
    (50, "fair", "🌿", "Your garden needs a bit more care. You can do it!"),
    (0, "needs-care", "🌱", "Your garden needs attention. Time to water those habits!"),
]

EMPTY_MOOD = {
    "mood_level": "empty",
    "mood_score": 0,
    "mood_emoji": "🌱",
    "mood_description": "No habits planted yet. Start growing your garden!",
}


@dataclass
class StreakResult:
    current: int = 0
    longest: int = 0
    start_date: Optional[date] = None
    per_log: dict = field(default_factory=dict)  # date -> streak ending on that log


@dataclass
class GardenState:
    health_points: int = MAX_POINTS
    water_level: int = 0
    total_completions: int = 0


def clamp(value: int, low: int = 0, high: int = MAX_POINTS) -> int:
    return max(low, min(high, value))


def streak_gap_days(frequency: str, custom_schedule: Optional[dict] = None) -> int:
    """Largest gap in days between logs that still continues a streak."""
    if frequency in FREQUENCY_GAP_DAYS:
        return FREQUENCY_GAP_DAYS[frequency]
    interval = (custom_schedule or {}).get("custom_interval")
    if isinstance(interval, int) and interval > 0:
        return interval
    return 1


def compute_streaks(logs: Iterable, max_gap: int = 1) -> StreakResult:
    """Walk logs oldest-first and measure completed/partial runs.

    Missed logs break a run, skipped logs keep it alive without extending it,
    and a gap longer than ``max_gap`` days between logs also breaks it.
    """
    result = StreakResult()
    run = 0
    run_start = None
    anchor = None

    for log in logs:
        status = log.status
        if anchor is not None and run > 0 and (log.date - anchor).days > max_gap:
            run = 0
            run_start = None

        if status == "missed":
            run = 0
            run_start = None
        elif status in ("completed", "partial"):
            run += 1
            if run == 1:
                run_start = log.date
            if run > result.longest:
                result.longest = run

        anchor = log.date
        result.per_log[log.date] = run

    result.current = run
    result.start_date = run_start if run > 0 else None
    return result


def replay_garden(statuses: Iterable[str]) -> GardenState:
    """Apply each log's effect in order, starting from a fresh flower."""
    state = GardenState()
    for status in statuses:
        water, health = STATUS_EFFECTS.get(status, (0, 0))
        state.water_level = clamp(state.water_level + water)
        state.health_points = clamp(state.health_points + health)
        if status == "completed":
            state.total_completions += 1
    return state


def period_days(start_date: Optional[date], end_date: Optional[date]) -> int:
    if start_date and end_date:
        return max(1, (end_date - start_date).days)
    return DEFAULT_PERIOD_DAYS


def growth_percentage(
    total_completions: int,
    target_count: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> int:
    expected = period_days(start_date, end_date) * max(1, target_count or 1)
    return min(MAX_POINTS, round(total_completions / expected * 100))


def growth_label(growth: int) -> str:
    for threshold, label in GROWTH_LABELS:
        if growth < threshold:
            return label
    return "fully_bloomed"


def is_blooming(growth: int, health: int) -> bool:
    return growth >= 80 and health > 80


def is_wilting(health: int) -> bool:
    return health < 50


def needs_water(water: int) -> bool:
    return water < 30


def is_perfect_day(status: str, completed_count: int, target_count: int) -> bool:
    return status == "completed" and completed_count >= target_count


def garden_mood(total_habits: int, completed: int, partial: int) -> dict:
    """Today's mood for the whole garden."""
    if total_habits <= 0:
        return dict(EMPTY_MOOD)

    score = round((completed + 0.5 * partial) / total_habits * 100)
    for threshold, level, emoji, description in MOOD_LEVELS:
        if score >= threshold:
            return {
                "mood_level": level,
                "mood_score": score,
                "mood_emoji": emoji,
                "mood_description": description,
            }
    # unreachable: the last level has threshold 0
    return dict(EMPTY_MOOD)


def completion_rate(done: int, total: int) -> int:
    if total <= 0:
        return 0
    return round(done / total * 100)
