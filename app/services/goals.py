"""Goals: CRUD, progress tracking, milestones and schedule analytics."""

import logging
import math
import uuid
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BadRequestError, NotFoundError
from app.models.goal import DEFAULT_GOAL_SETTINGS, Goal, GoalProgress, GoalStatus, GoalType, ProgressType
from app.models.habit import Habit
from app.schemas.goals import GoalCreate, GoalProgressCreate, GoalUpdate
from app.services.smart_home import fire_event

logger = logging.getLogger(__name__)

UPCOMING_WINDOW_DAYS = 30
GOAL_ACHIEVED = "goal_achieved"


def _check_dates(start: date, target: date) -> None:
    if target < start:
        raise BadRequestError(
            f"Target date {target} is before start date {start}",
            message_key="goal.invalid_dates",
        )


async def _check_habits(session: AsyncSession, user_id: int, habit_ids: list[int]) -> None:
    if not habit_ids:
        return
    result = await session.execute(
        select(Habit.id).where(Habit.user_id == user_id, Habit.id.in_(habit_ids))
    )
    missing = set(habit_ids) - set(result.scalars().all())
    if missing:
        raise NotFoundError(f"Habit {min(missing)} not found", message_key="habit.not_found")


def _new_milestone(data) -> dict:
    return {
        "id": f"ms_{uuid.uuid4().hex[:12]}",
        "title": data.title,
        "description": data.description,
        "target_value": data.target_value,
        "target_date": data.target_date.isoformat() if data.target_date else None,
        "is_completed": False,
        "achieved_at": None,
        "achieved_value": None,
    }


async def create_goal(
    session: AsyncSession,
    user_id: int,
    data: GoalCreate,
    today: Optional[date] = None,
) -> Goal:
    fields = data.model_dump(exclude_none=True, exclude={"milestones", "settings"})
    fields["start_date"] = fields.get("start_date") or today or date.today()
    _check_dates(fields["start_date"], data.target_date)
    await _check_habits(session, user_id, data.habit_ids or [])

    goal = Goal(
        user_id=user_id,
        status=GoalStatus.ACTIVE.value,
        current_value=0.0,
        progress_percentage=0.0,
        milestones=[_new_milestone(m) for m in data.milestones or []],
        achievements=[],
        settings={**DEFAULT_GOAL_SETTINGS, **(data.settings or {})},
        last_activity_at=datetime.utcnow(),
        **fields,
    )
    session.add(goal)
    await session.flush()
    await session.refresh(goal)
    logger.info(f"User {user_id} set goal {goal.id} ({goal.title})")
    return goal


async def list_goals(
    session: AsyncSession,
    user_id: int,
    status: Optional[str] = None,
    type: Optional[str] = None,
    priority: Optional[str] = None,
    difficulty: Optional[str] = None,
    category: Optional[str] = None,
    tag: Optional[str] = None,
    search: Optional[str] = None,
) -> list[Goal]:
    """Goals for a user, newest first."""
    query = select(Goal).where(Goal.user_id == user_id)
    for column, value in (
        (Goal.status, status),
        (Goal.type, type),
        (Goal.priority, priority),
        (Goal.difficulty, difficulty),
        (Goal.category, category),
    ):
        if value is not None:
            query = query.where(column == value)
    result = await session.execute(query.order_by(Goal.created_at.desc(), Goal.id.desc()))
    goals = list(result.scalars().all())

    # tags are a JSON list
    if tag is not None:
        goals = [g for g in goals if tag in (g.tags or [])]
    if search:
        needle = search.lower()
        goals = [g for g in goals if needle in g.title.lower() or needle in (g.description or "").lower()]
    return goals


async def get_goal(session: AsyncSession, goal_id: int, user_id: int) -> Goal:
    result = await session.execute(
        select(Goal).where(Goal.id == goal_id, Goal.user_id == user_id)
    )
    goal = result.scalar_one_or_none()
    if goal is None:
        raise NotFoundError(f"Goal {goal_id} not found", message_key="goal.not_found")
    return goal


async def update_goal(session: AsyncSession, goal_id: int, user_id: int, data: GoalUpdate) -> Goal:
    goal = await get_goal(session, goal_id, user_id)
    changes = data.model_dump(exclude_unset=True)
    _check_dates(changes.get("start_date", goal.start_date), changes.get("target_date", goal.target_date))
    if changes.get("habit_ids"):
        await _check_habits(session, user_id, changes["habit_ids"])
    if "settings" in changes:
        changes["settings"] = {**DEFAULT_GOAL_SETTINGS, **(goal.settings or {}), **(changes["settings"] or {})}

    for key, value in changes.items():
        setattr(goal, key, value)
    goal.last_activity_at = datetime.utcnow()
    await session.flush()
    await session.refresh(goal)
    return goal


async def delete_goal(session: AsyncSession, goal_id: int, user_id: int) -> None:
    goal = await get_goal(session, goal_id, user_id)
    await session.execute(delete(GoalProgress).where(GoalProgress.goal_id == goal.id))
    await session.delete(goal)
    await session.flush()
    logger.info(f"User {user_id} removed goal {goal_id}")


def _reach_milestones(goal: Goal, value: float, now: datetime) -> list[dict]:
    """Mark milestones the value has reached. Returns the newly reached ones."""
    reached = []
    milestones = [dict(m) for m in goal.milestones or []]
    achievements = list(goal.achievements or [])
    for milestone in milestones:
        if milestone.get("is_completed") or value < milestone["target_value"]:
            continue
        milestone.update({"is_completed": True, "achieved_at": now.isoformat(), "achieved_value": value})
        achievements.append({
            "id": f"ach_{uuid.uuid4().hex[:12]}",
            "title": f"Milestone: {milestone['title']}",
            "description": f"Achieved milestone: {milestone.get('description') or milestone['title']}",
            "type": "milestone",
            "badge": "milestone",
            "achieved_at": now.isoformat(),
        })
        reached.append(milestone)

    if reached:
        # JSON columns only persist on reassignment
        goal.milestones = milestones
        goal.achievements = achievements
    return reached


async def add_progress(
    session: AsyncSession,
    goal_id: int,
    user_id: int,
    data: GoalProgressCreate,
    now: Optional[datetime] = None,
    fire_triggers: bool = True,
) -> GoalProgress:
    """Record a new value for an active goal and roll it into the goal's progress."""
    now = now or datetime.utcnow()
    goal = await get_goal(session, goal_id, user_id)
    if goal.status != GoalStatus.ACTIVE.value:
        raise BadRequestError(
            "Cannot add progress to non-active goal",
            message_key="goal.not_active",
            status=goal.status,
        )

    result = await session.execute(
        select(GoalProgress)
        .where(GoalProgress.goal_id == goal.id)
        .order_by(GoalProgress.date.desc(), GoalProgress.id.desc())
        .limit(1)
    )
    previous = result.scalar_one_or_none()
    previous_value = previous.value if previous is not None else 0.0
    change = data.value - previous_value

    progress = GoalProgress(
        goal_id=goal.id,
        user_id=user_id,
        value=data.value,
        previous_value=previous_value,
        change=change,
        percentage_change=change / previous_value * 100 if previous_value else 0.0,
        date=data.date,
        notes=data.notes,
        mood=data.mood,
        progress_type=data.progress_type,
        meta=data.metadata,
    )
    session.add(progress)

    goal.current_value = data.value
    goal.last_activity_at = now
    if goal.target_value:
        goal.progress_percentage = min(data.value / goal.target_value * 100, 100.0)

    events = [{"goal_id": goal.id, "milestone_id": m["id"]} for m in _reach_milestones(goal, data.value, now)]
    if goal.progress_percentage >= 100:
        goal.status = GoalStatus.COMPLETED.value
        goal.completed_date = now.date()
        events.append({"goal_id": goal.id})
        logger.info(f"Goal {goal.id} reached its target of {goal.target_value}")

    await session.flush()
    await session.refresh(progress)

    if fire_triggers:
        for event in events:
            await fire_event(session, user_id, [GOAL_ACHIEVED], event)
    return progress


async def progress_history(session: AsyncSession, goal_id: int, user_id: int) -> list[GoalProgress]:
    """Recorded values for a goal, oldest first."""
    goal = await get_goal(session, goal_id, user_id)
    result = await session.execute(
        select(GoalProgress)
        .where(GoalProgress.goal_id == goal.id)
        .order_by(GoalProgress.date, GoalProgress.id)
    )
    return list(result.scalars().all())


async def complete_goal(session: AsyncSession, goal_id: int, user_id: int, today: Optional[date] = None) -> Goal:
    goal = await get_goal(session, goal_id, user_id)
    if goal.status == GoalStatus.COMPLETED.value:
        raise BadRequestError("Goal is already completed", message_key="goal.already_completed")

    goal.status = GoalStatus.COMPLETED.value
    goal.completed_date = today or date.today()
    goal.progress_percentage = 100.0
    goal.last_activity_at = datetime.utcnow()
    await session.flush()
    await fire_event(session, user_id, [GOAL_ACHIEVED], {"goal_id": goal.id})
    await session.refresh(goal)
    return goal


async def pause_goal(session: AsyncSession, goal_id: int, user_id: int) -> Goal:
    goal = await get_goal(session, goal_id, user_id)
    if goal.status != GoalStatus.ACTIVE.value:
        raise BadRequestError("Only active goals can be paused", message_key="goal.not_active", status=goal.status)
    goal.status = GoalStatus.PAUSED.value
    goal.last_activity_at = datetime.utcnow()
    await session.flush()
    await session.refresh(goal)
    return goal


async def resume_goal(session: AsyncSession, goal_id: int, user_id: int) -> Goal:
    goal = await get_goal(session, goal_id, user_id)
    if goal.status != GoalStatus.PAUSED.value:
        raise BadRequestError("Only paused goals can be resumed", message_key="goal.not_paused")
    goal.status = GoalStatus.ACTIVE.value
    goal.last_activity_at = datetime.utcnow()
    await session.flush()
    await session.refresh(goal)
    return goal


def _schedule_days(goal: Goal, today: date) -> tuple[int, int]:
    return (goal.target_date - goal.start_date).days, (today - goal.start_date).days


def expected_progress(goal: Goal, today: date) -> float:
    """Percent of the goal's timeline already used up."""
    total, elapsed = _schedule_days(goal, today)
    if total <= 0 or elapsed <= 0:
        return 0.0
    return min(elapsed / total * 100, 100.0)


def is_on_track(goal: Goal, today: date) -> bool:
    if goal.status != GoalStatus.ACTIVE.value:
        return False
    total, elapsed = _schedule_days(goal, today)
    if total <= 0 or elapsed <= 0:
        return True
    return goal.progress_percentage >= elapsed / total * 100


def projected_completion(goal: Goal, today: date) -> date:
    """Extrapolate the finish date from the pace so far."""
    if goal.progress_percentage <= 0:
        return goal.target_date
    elapsed = max((today - goal.start_date).days, 1)
    return goal.start_date + timedelta(days=math.ceil(elapsed * 100 / goal.progress_percentage))


def recommended_actions(goal: Goal, on_track: bool) -> list[str]:
    actions = []
    if not on_track:
        actions += [
            "Increase daily effort to catch up with timeline",
            "Review and adjust goal timeline if needed",
            "Break down goal into smaller, manageable tasks",
        ]

    pct = goal.progress_percentage
    if pct < 25:
        actions += ["Focus on building momentum with small wins", "Set up daily reminders and tracking"]
    elif pct < 50:
        actions += ["Maintain consistent progress patterns", "Celebrate intermediate achievements"]
    elif pct < 75:
        actions += ["Push through the middle phase", "Stay motivated with progress visualization"]
    else:
        actions += ["Focus on finishing strong", "Plan for post-goal maintenance"]

    if any(not m.get("is_completed") for m in goal.milestones or []):
        actions.append("Work towards next milestone")
    return actions


async def goal_analytics(session: AsyncSession, user_id: int, today: Optional[date] = None) -> dict:
    today = today or date.today()
    goals = await list_goals(session, user_id)
    active = [g for g in goals if g.status == GoalStatus.ACTIVE.value]
    completed = [g for g in goals if g.status == GoalStatus.COMPLETED.value]
    behind = [g for g in active if not is_on_track(g, today)]

    durations = [(g.completed_date - g.start_date).days for g in completed if g.completed_date]

    by_category: dict[str, list[float]] = {}
    for goal in goals:
        if goal.category:
            by_category.setdefault(goal.category, []).append(goal.progress_percentage)
    ranked = sorted(by_category.items(), key=lambda item: sum(item[1]) / len(item[1]), reverse=True)

    return {
        "total_goals": len(goals),
        "active_goals": len(active),
        "completed_goals": len(completed),
        "average_progress": sum(g.progress_percentage for g in goals) / len(goals) if goals else 0.0,
        "on_track_goals": len(active) - len(behind),
        "behind_schedule_goals": len(behind),
        "completion_rate": len(completed) / len(goals) * 100 if goals else 0.0,
        "average_days_to_complete": sum(durations) / len(durations) if durations else 0.0,
        "top_performing_categories": [category for category, _ in ranked[:5]],
        "needs_attention_goals": [g.id for g in behind],
    }


async def progress_report(session: AsyncSession, user_id: int, today: Optional[date] = None) -> list[dict]:
    today = today or date.today()
    report = []
    for goal in await list_goals(session, user_id, status=GoalStatus.ACTIVE.value):
        on_track = is_on_track(goal, today)
        report.append({
            "goal_id": goal.id,
            "goal_title": goal.title,
            "current_progress": goal.progress_percentage,
            "target_progress": expected_progress(goal, today),
            "days_remaining": max(0, (goal.target_date - today).days),
            "is_on_track": on_track,
            "projected_completion_date": projected_completion(goal, today).isoformat(),
            "recommended_actions": recommended_actions(goal, on_track),
        })
    return report


async def upcoming_goals(
    session: AsyncSession,
    user_id: int,
    today: Optional[date] = None,
    days: int = UPCOMING_WINDOW_DAYS,
) -> list[Goal]:
    """Active goals due within the next ``days`` days."""
    today = today or date.today()
    goals = await list_goals(session, user_id, status=GoalStatus.ACTIVE.value)
    return [g for g in goals if today <= g.target_date <= today + timedelta(days=days)]


async def overdue_goals(session: AsyncSession, user_id: int, today: Optional[date] = None) -> list[Goal]:
    today = today or date.today()
    goals = await list_goals(session, user_id, status=GoalStatus.ACTIVE.value)
    return [g for g in goals if g.target_date < today and g.progress_percentage < 100]


async def goals_with_milestones(session: AsyncSession, user_id: int) -> list[Goal]:
    return [g for g in await list_goals(session, user_id) if g.milestones]


async def sync_habit_goals(
    session: AsyncSession,
    user_id: int,
    habit_id: int,
    on: date,
    fire_triggers: bool = True,
) -> list[GoalProgress]:
    """Feed habit completion totals into the active habit-based goals that track the habit."""
    goals = [
        g for g in await list_goals(
            session, user_id, status=GoalStatus.ACTIVE.value, type=GoalType.HABIT_BASED.value
        )
        if habit_id in (g.habit_ids or [])
    ]
    recorded = []
    for goal in goals:
        result = await session.execute(
            select(Habit.total_completions).where(Habit.user_id == user_id, Habit.id.in_(goal.habit_ids))
        )
        value = float(sum(result.scalars().all()))
        if value == goal.current_value:
            continue
        recorded.append(await add_progress(
            session,
            goal.id,
            user_id,
            GoalProgressCreate(value=value, date=on, progress_type=ProgressType.HABIT_SYNC),
            fire_triggers=fire_triggers,
        ))
    if recorded:
        logger.info(f"Habit {habit_id} moved {len(recorded)} goal(s) for user {user_id}")
    return recorded
