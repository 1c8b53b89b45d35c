"""AI gardener - garden insights, habit coaching and weekly reports.

Completions come from the OpenAI chat API. Without an API key, or when the
API call fails, each operation returns a deterministic fallback built from
the habit data alone.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Optional

from openai import AsyncOpenAI, OpenAIError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.models.habit import Habit, HabitLog
from app.models.user import User
from app.services import prompts
from app.services.habits import get_habit, list_habits

logger = logging.getLogger(__name__)

TEMPERATURE = 0.7
INSIGHTS_MAX_TOKENS = 500
COACHING_MAX_TOKENS = 400
REPORT_MAX_TOKENS = 600

_client: Optional[AsyncOpenAI] = None


def get_client() -> Optional[AsyncOpenAI]:
    """Shared OpenAI client, or None when no API key is configured."""
    global _client
    settings = get_settings()
    if not settings.openai_api_key:
        return None
    if _client is None:
        _client = AsyncOpenAI(api_key=settings.openai_api_key)
    return _client


async def _complete(system_prompt: str, user_prompt: str, max_tokens: int) -> Optional[str]:
    """Run one chat completion. Returns None when AI is unavailable."""
    client = get_client()
    if client is None:
        return None
    try:
        completion = await client.chat.completions.create(
            model=get_settings().openai_model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            max_tokens=max_tokens,
            temperature=TEMPERATURE,
        )
    except OpenAIError as e:
        logger.error(f"OpenAI request failed: {e}")
        return None
    return completion.choices[0].message.content or ""


def _user_name(user: User) -> str:
    return user.full_name or user.username or user.email


# Parsing

def parse_insights(text: str) -> dict:
    return {"summary": text, "key_points": [line for line in text.split("\n") if line.strip()]}


def parse_coaching(text: str) -> dict:
    return {"advice": text, "key_tips": [line for line in text.split("\n") if line.strip()]}


def parse_weekly_report(text: str) -> dict:
    return {"content": text, "sections": [s for s in text.split("\n\n") if s.strip()]}


# Heuristics used alongside (or instead of) the model output

def garden_mood(habits: list) -> str:
    if not habits:
        return "empty"
    total = len(habits)
    blooming = sum(1 for h in habits if h.growth_stage >= 80)
    growing = sum(1 for h in habits if 50 <= h.growth_stage < 80)
    if blooming / total >= 0.7:
        return "blooming"
    if (blooming + growing) / total >= 0.6:
        return "growing"
    if blooming / total >= 0.3:
        return "stable"
    return "wilting"


def recommendations(habits: list) -> list[str]:
    if not habits:
        return [
            "Start with one simple habit to build momentum",
            "Choose a habit that aligns with your core values",
        ]
    recs = []
    low_health = [h for h in habits if h.health_points < 50]
    if low_health:
        recs.append(f"Focus on nurturing your {low_health[0].title} habit first")
    if any(h.current_streak < 3 for h in habits):
        recs.append("Build consistency by focusing on daily completion")
    if len(habits) < 3:
        recs.append("Consider adding a complementary habit to your garden")
    return recs


def motivation(habits: list) -> str:
    if not habits:
        return "Every beautiful garden starts with a single seed. Your journey to positive change begins today! 🌱"

    blooming = sum(1 for h in habits if h.growth_stage >= 80)
    if blooming:
        verb = "habits are" if blooming > 1 else "habit is"
        return f"Your garden is flourishing! {blooming} {verb} blooming beautifully. Keep up the amazing work! 🌸"

    if any(h.growth_stage >= 50 for h in habits):
        return (
            "Your habits are growing strong! With consistent care, they'll soon bloom "
            "into beautiful flowers. Stay patient and persistent! 🌱"
        )
    return "Every day of care brings your habits closer to blooming. You're building something beautiful, one day at a time! 💪"


def habit_status(habit) -> str:
    if habit.growth_stage >= 80 and habit.health_points >= 80:
        return "blooming"
    if habit.growth_stage >= 50 and habit.health_points >= 50:
        return "growing"
    if habit.water_level < 30 or habit.health_points < 30:
        return "wilting"
    return "stable"


def habit_strength(habit) -> int:
    strength = habit.current_streak / max(habit.longest_streak, 1) * 30
    strength += habit.growth_stage / 100 * 30
    strength += habit.health_points / 100 * 20
    strength += habit.water_level / 100 * 20
    return round(strength)


def improvement_areas(habit) -> list[str]:
    areas = []
    if habit.current_streak < 3:
        areas.append("Build consistency")
    if habit.growth_stage < 50:
        areas.append("Focus on progress")
    if habit.health_points < 70:
        areas.append("Improve habit health")
    if habit.water_level < 70:
        areas.append("Increase engagement")
    return areas


def habit_potential(habit) -> str:
    if habit.current_streak >= 7:
        return "high"
    if habit.current_streak >= 3:
        return "medium"
    return "developing"


def analyze_habit(habit) -> dict:
    return {
        "status": habit_status(habit),
        "strength": habit_strength(habit),
        "areas": improvement_areas(habit),
        "potential": habit_potential(habit),
    }


def next_steps(habit) -> list[str]:
    steps = []
    if habit.current_streak < 3:
        steps.append("Focus on completing this habit for the next 3 days")
    if habit.growth_stage < 50:
        steps.append("Set a small daily goal to build momentum")
    if habit.health_points < 70:
        steps.append("Reflect on what makes this habit sustainable for you")
    return steps


def encouragement(habit) -> str:
    if habit.current_streak > 0:
        return (
            f"You're on a {habit.current_streak}-day streak! That's {habit.current_streak} days "
            f"of positive change. Keep going! 🌟"
        )
    return "Every new beginning is a chance to grow. Today is the perfect day to start nurturing this habit! 🌱"


def week_progress(habits: list, logs: list) -> dict:
    """Consistency over the last 7 days of logs."""
    done = [log for log in logs if log.status in ("completed", "partial")]
    possible = len(habits) * 7
    return {
        "days_tracked": 7,
        "habits_completed": len({log.habit_id for log in done if log.status == "completed"}),
        "consistency_rate": round(len(done) / possible * 100) if possible else 0,
    }


def weekly_stats(habits: list, logs: list) -> dict:
    return {
        "total_habits": len(habits),
        "active_habits": sum(1 for h in habits if h.is_active),
        "total_streak": sum(h.current_streak for h in habits),
        "average_growth": round(sum(h.growth_stage for h in habits) / len(habits)) if habits else 0,
        "week_progress": week_progress(habits, logs),
    }


def achievements(habits: list) -> list[str]:
    found = []
    for habit in habits:
        if habit.current_streak >= 7:
            found.append(f"7-day streak with {habit.title}! 🎉")
        if habit.growth_stage >= 80:
            found.append(f"{habit.title} is blooming beautifully! 🌸")
        if habit.current_streak > 0 and habit.current_streak >= habit.longest_streak >= 3:
            found.append(f"Personal best streak with {habit.title}! 🏆")
    return found or ["Getting started is an achievement in itself! 🌱"]


def next_week_goals(habits: list) -> list[str]:
    if not habits:
        return ["Plant your first habit", "Set a daily reminder"]
    goals = ["Maintain current streaks", "Focus on one habit that needs attention"]
    if len(habits) < 3:
        goals.append("Consider adding a complementary habit")
    return goals


# Operations

async def garden_insights(session: AsyncSession, user: User) -> dict:
    habits = await list_habits(session, user.id)
    text = await _complete(
        prompts.GARDEN_INSIGHTS_SYSTEM_PROMPT,
        prompts.format_garden_insights_prompt(_user_name(user), habits),
        INSIGHTS_MAX_TOKENS,
    )
    if text is None:
        insights = {
            "summary": "Your AI Gardener is taking a break, but here are some general insights for your habit garden!",
            "key_points": [
                "Consistency is the key to habit growth",
                "Small daily actions compound into big results",
                "Every habit is like a seed - nurture it daily",
            ],
        }
    else:
        insights = parse_insights(text)

    return {
        "insights": insights,
        "garden_mood": garden_mood(habits),
        "recommendations": recommendations(habits),
        "motivation": motivation(habits),
        "ai_generated": text is not None,
        "timestamp": datetime.utcnow(),
    }


async def habit_coaching(session: AsyncSession, habit_id: int, user: User) -> dict:
    habit = await get_habit(session, habit_id, user.id)
    text = await _complete(
        prompts.HABIT_COACHING_SYSTEM_PROMPT,
        prompts.format_habit_coaching_prompt(habit),
        COACHING_MAX_TOKENS,
    )
    coaching = (
        {"advice": "Focus on consistency and small improvements", "key_tips": []}
        if text is None
        else parse_coaching(text)
    )
    return {
        "coaching": coaching,
        "habit_analysis": analyze_habit(habit),
        "next_steps": next_steps(habit),
        "encouragement": encouragement(habit),
        "ai_generated": text is not None,
        "timestamp": datetime.utcnow(),
    }


async def _recent_logs(session: AsyncSession, user_id: int, today: date) -> list[HabitLog]:
    result = await session.execute(
        select(HabitLog).where(
            HabitLog.user_id == user_id,
            HabitLog.date > today - timedelta(days=7),
            HabitLog.date <= today,
        )
    )
    return list(result.scalars().all())


async def weekly_report(session: AsyncSession, user: User, today: Optional[date] = None) -> dict:
    today = today or date.today()
    habits: list[Habit] = await list_habits(session, user.id)
    logs = await _recent_logs(session, user.id, today)

    text = await _complete(
        prompts.WEEKLY_REPORT_SYSTEM_PROMPT,
        prompts.format_weekly_report_prompt(_user_name(user), habits, today.isoformat()),
        REPORT_MAX_TOKENS,
    )
    report = (
        {
            "content": "Weekly progress report - keep up the great work!",
            "sections": ["Progress Summary", "Areas for Improvement", "Next Week Goals"],
        }
        if text is None
        else parse_weekly_report(text)
    )
    return {
        "report": report,
        "weekly_stats": weekly_stats(habits, logs),
        "achievements": achievements(habits),
        "next_week_goals": next_week_goals(habits),
        "ai_generated": text is not None,
        "timestamp": datetime.utcnow(),
    }
