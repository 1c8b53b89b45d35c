"""Goals, their milestones and recorded progress."""

from datetime import datetime, date
from enum import Enum
from sqlalchemy import (
    Column,
    Integer,
    Float,
    String,
    Text,
    Date,
    DateTime,
    JSON,
    ForeignKey,
    Index,
)

from app.core.database import Base


class GoalStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    PAUSED = "paused"
    CANCELLED = "cancelled"


class GoalType(str, Enum):
    HABIT_BASED = "habit_based"
    NUMERIC = "numeric"
    TIME_BASED = "time_based"
    MILESTONE = "milestone"
    COMPOSITE = "composite"


class GoalDifficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    EXPERT = "expert"


class GoalPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ProgressType(str, Enum):
    MANUAL = "manual"
    AUTOMATIC = "automatic"
    HABIT_SYNC = "habit_sync"
    MILESTONE = "milestone"


DEFAULT_GOAL_SETTINGS = {
    "allow_partial_progress": True,
    "require_verification": False,
    "auto_adjust_target": False,
    "reminder_frequency": "daily",
    "show_progress": True,
    "share_progress": False,
}


class Goal(Base):
    """A dated target, optionally fed by one or more habits."""

    __tablename__ = "goals"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String, nullable=False, default=GoalType.NUMERIC.value)
    status = Column(String, nullable=False, default=GoalStatus.ACTIVE.value)
    difficulty = Column(String, nullable=False, default=GoalDifficulty.MEDIUM.value)
    priority = Column(String, nullable=False, default=GoalPriority.MEDIUM.value)
    # SMART breakdown, free text
    specific = Column(Text, nullable=True)
    measurable = Column(Text, nullable=True)
    achievable = Column(Text, nullable=True)
    relevant = Column(Text, nullable=True)
    time_bound = Column(Text, nullable=True)
    target_value = Column(Float, nullable=True)
    current_value = Column(Float, nullable=False, default=0.0)
    progress_percentage = Column(Float, nullable=False, default=0.0)
    start_date = Column(Date, nullable=False, default=date.today)
    target_date = Column(Date, nullable=False)
    completed_date = Column(Date, nullable=True)
    milestones = Column(JSON, nullable=True)  # id, title, target_value, is_completed, achieved_at
    achievements = Column(JSON, nullable=True)
    habit_ids = Column(JSON, nullable=True)
    settings = Column(JSON, nullable=True)
    tags = Column(JSON, nullable=True)
    category = Column(String, nullable=True)
    motivation = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    last_activity_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


class GoalProgress(Base):
    """One recorded value for a goal."""

    __tablename__ = "goal_progress"

    id = Column(Integer, primary_key=True, autoincrement=True)
    goal_id = Column(Integer, ForeignKey("goals.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    value = Column(Float, nullable=False)
    previous_value = Column(Float, nullable=False, default=0.0)
    change = Column(Float, nullable=False, default=0.0)
    percentage_change = Column(Float, nullable=False, default=0.0)
    date = Column(Date, nullable=False)
    notes = Column(Text, nullable=True)
    mood = Column(Integer, nullable=True)  # 1-10
    progress_type = Column(String, nullable=False, default=ProgressType.MANUAL.value)
    meta = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        Index("ix_goal_progress_goal_date", "goal_id", "date"),
    )
