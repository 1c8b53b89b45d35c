"""Correlation analysis between habit completion and health data."""

import logging
from collections import defaultdict
from datetime import date, datetime, time, timedelta
from typing import Optional

import numpy as np
from scipy import stats
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.habit import HabitLog
from app.models.wearable import HealthData
from app.services.habits import get_habit
from app.services.health_data import numeric_value

logger = logging.getLogger(__name__)

LOOKBACK_DAYS = 365


def completion_by_day(logs: list) -> dict[date, float]:
    """1.0 for completed/partial days, 0.0 for missed. Skipped days are left out."""
    series = {}
    for log in logs:
        if log.status in ("completed", "partial"):
            series[log.date] = 1.0
        elif log.status == "missed":
            series[log.date] = 0.0
    return series


def daily_means(entries: list) -> dict[str, dict[date, float]]:
    """Mean numeric value per health-data type per day."""
    buckets: dict[str, dict[date, list[float]]] = defaultdict(lambda: defaultdict(list))
    for entry in entries:
        value = numeric_value(entry.value)
        if value is None:
            continue
        buckets[entry.type][entry.timestamp.date()].append(value)
    return {
        data_type: {day: float(np.mean(values)) for day, values in days.items()}
        for data_type, days in buckets.items()
    }


def _strength(r: float) -> str:
    abs_r = abs(r)
    if abs_r > 0.5:
        return "strong"
    if abs_r > 0.3:
        return "moderate"
    return "weak"


def correlate(completion: dict[date, float], metrics: dict[str, dict[date, float]], min_days: int = 5) -> list[dict]:
    """Pearson correlation of each metric against habit completion, strongest first."""
    results = []
    for metric, by_day in metrics.items():
        days = sorted(set(completion) & set(by_day))
        if len(days) < min_days:
            continue

        done_vals = [completion[d] for d in days]
        metric_vals = [by_day[d] for d in days]

        # Can't correlate if all values are the same
        if np.std(done_vals) == 0 or np.std(metric_vals) == 0:
            continue

        r, p_value = stats.pearsonr(done_vals, metric_vals)

        done_days = [by_day[d] for d in days if completion[d] == 1.0]
        missed_days = [by_day[d] for d in days if completion[d] == 0.0]
        done_avg = float(np.mean(done_days)) if done_days else None
        missed_avg = float(np.mean(missed_days)) if missed_days else None

        diff_pct = None
        if done_avg is not None and missed_avg:
            diff_pct = (done_avg - missed_avg) / missed_avg * 100

        results.append({
            "metric": metric,
            "coefficient": float(r),
            "p_value": float(p_value),
            "n": len(days),
            "strength": _strength(r),
            "done_day_avg": done_avg,
            "not_done_day_avg": missed_avg,
            "difference_pct": float(diff_pct) if diff_pct is not None else None,
        })

    results.sort(key=lambda x: abs(x["coefficient"]), reverse=True)
    return results


async def habit_health_correlations(
    session: AsyncSession,
    user_id: int,
    habit_id: int,
    min_days: int = 5,
    today: Optional[date] = None,
) -> list[dict]:
    habit = await get_habit(session, habit_id, user_id)
    end_date = today or date.today()
    start_date = end_date - timedelta(days=LOOKBACK_DAYS)

    logs = await session.execute(
        select(HabitLog).where(
            HabitLog.habit_id == habit.id,
            HabitLog.date >= start_date,
            HabitLog.date <= end_date,
        )
    )
    completion = completion_by_day(list(logs.scalars().all()))
    if len(completion) < min_days:
        logger.warning(f"Insufficient data for habit {habit_id}: {len(completion)} days (need {min_days})")
        return []

    entries = await session.execute(
        select(HealthData).where(
            HealthData.user_id == user_id,
            HealthData.timestamp >= datetime.combine(start_date, time.min),
            HealthData.timestamp <= datetime.combine(end_date, time.max),
        )
    )
    results = correlate(completion, daily_means(list(entries.scalars().all())), min_days)
    logger.info(f"Computed {len(results)} health correlations for habit {habit_id}")
    return results


async def habit_health_insights(
    session: AsyncSession,
    user_id: int,
    habit_id: int,
    min_days: int = 5,
    today: Optional[date] = None,
) -> list[dict]:
    """Plain-English insights from the strongest habit/health correlations."""
    habit = await get_habit(session, habit_id, user_id)
    correlations = await habit_health_correlations(session, user_id, habit_id, min_days, today)

    insights = []
    for corr in correlations[:3]:
        if abs(corr["coefficient"]) < 0.3:
            continue
        metric_name = corr["metric"].replace("_", " ")
        direction = "higher" if corr["coefficient"] > 0 else "lower"
        insights.append({
            "text": (
                f"Days you complete {habit.title} tend to have {direction} "
                f"{metric_name} (r={corr['coefficient']:.2f})"
            ),
            "confidence": "medium" if corr["n"] >= 14 else "low",
            "supporting_metric": corr["metric"],
            "effect_size": abs(corr["coefficient"]),
        })

    confidence_order = {"medium": 2, "low": 1}
    insights.sort(key=lambda x: (confidence_order[x["confidence"]], x["effect_size"]), reverse=True)
    return insights
