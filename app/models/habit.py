"""Habits (flowers) and their daily logs."""

from datetime import datetime, date
from enum import Enum
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Date,
    DateTime,
    Boolean,
    JSON,
    ForeignKey,
    Index,
    UniqueConstraint,
)

from app.core.database import Base
from app.services import garden


class HabitCategory(str, Enum):
    HEALTH = "health"
    FITNESS = "fitness"
    PRODUCTIVITY = "productivity"
    LEARNING = "learning"
    RELATIONSHIPS = "relationships"
    FINANCE = "finance"
    CREATIVITY = "creativity"
    MINDFULNESS = "mindfulness"
    SOCIAL = "social"
    OTHER = "other"


class HabitFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"


class FlowerType(str, Enum):
    ROSE = "rose"
    SUNFLOWER = "sunflower"
    TULIP = "tulip"
    DAISY = "daisy"
    LILY = "lily"
    ORCHID = "orchid"
    CACTUS = "cactus"
    BAMBOO = "bamboo"
    BONSAI = "bonsai"


class LogStatus(str, Enum):
    COMPLETED = "completed"
    PARTIAL = "partial"
    MISSED = "missed"
    SKIPPED = "skipped"


class Habit(Base):
    """A tracked habit, drawn in the garden as a flower."""

    __tablename__ = "habits"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String, nullable=False, default=HabitCategory.OTHER.value)
    frequency = Column(String, nullable=False, default=HabitFrequency.DAILY.value)
    target_count = Column(Integer, nullable=False, default=1)
    current_streak = Column(Integer, nullable=False, default=0)
    longest_streak = Column(Integer, nullable=False, default=0)
    total_completions = Column(Integer, nullable=False, default=0)
    start_date = Column(Date, nullable=False, default=date.today)
    end_date = Column(Date, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    is_public = Column(Boolean, nullable=False, default=False)
    flower_type = Column(String, nullable=False, default=FlowerType.DAISY.value)
    growth_stage = Column(Integer, nullable=False, default=0)  # percent, 0-100
    health_points = Column(Integer, nullable=False, default=garden.MAX_POINTS)
    water_level = Column(Integer, nullable=False, default=0)
    custom_schedule = Column(JSON, nullable=True)  # days_of_week, custom_interval, time_of_day
    reminders = Column(JSON, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def growth_label(self) -> str:
        return garden.growth_label(self.growth_stage or 0)

    @property
    def is_blooming(self) -> bool:
        return garden.is_blooming(self.growth_stage or 0, self.health_points or 0)

    @property
    def is_wilting(self) -> bool:
        return garden.is_wilting(self.health_points or 0)

    @property
    def needs_water(self) -> bool:
        return garden.needs_water(self.water_level or 0)


class HabitLog(Base):
    """One day's outcome for a habit."""

    __tablename__ = "habit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    habit_id = Column(Integer, ForeignKey("habits.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)
    status = Column(String, nullable=False, default=LogStatus.COMPLETED.value)
    completed_count = Column(Integer, nullable=False, default=1)
    target_count = Column(Integer, nullable=False, default=1)
    notes = Column(Text, nullable=True)
    streak = Column(Integer, nullable=False, default=0)
    is_perfect_day = Column(Boolean, nullable=False, default=False)
    meta = Column("metadata", JSON, nullable=True)  # time_of_day, location, mood, difficulty
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "habit_id", "date", name="uix_habit_log_user_habit_date"),
        Index("ix_habit_logs_habit_date", "habit_id", "date"),
    )
