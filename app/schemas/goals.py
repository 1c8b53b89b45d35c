"""Request and response models for goals and goal progress."""

from datetime import date, datetime
from pydantic import AliasChoices, BaseModel, Field

from app.models.goal import GoalDifficulty, GoalPriority, GoalType, ProgressType
from app.schemas.common import PatchModel


class MilestoneCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str | None = None
    target_value: float
    target_date: date | None = None


class GoalCreate(BaseModel):
    class Config:
        use_enum_values = True
        validate_default = True

    title: str = Field(min_length=1, max_length=200)
    description: str | None = None
    type: GoalType = GoalType.NUMERIC
    difficulty: GoalDifficulty = GoalDifficulty.MEDIUM
    priority: GoalPriority = GoalPriority.MEDIUM
    specific: str | None = None
    measurable: str | None = None
    achievable: str | None = None
    relevant: str | None = None
    time_bound: str | None = None
    target_value: float | None = Field(default=None, gt=0)
    start_date: date | None = None
    target_date: date
    milestones: list[MilestoneCreate] | None = None
    habit_ids: list[int] | None = None
    settings: dict | None = None
    tags: list[str] | None = None
    category: str | None = None
    motivation: str | None = None
    notes: str | None = None


class GoalUpdate(PatchModel):
    class Config:
        use_enum_values = True
        validate_default = True

    not_null = ("title", "type", "difficulty", "priority", "start_date", "target_date")

    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    type: GoalType | None = None
    difficulty: GoalDifficulty | None = None
    priority: GoalPriority | None = None
    specific: str | None = None
    measurable: str | None = None
    achievable: str | None = None
    relevant: str | None = None
    time_bound: str | None = None
    target_value: float | None = Field(default=None, gt=0)
    start_date: date | None = None
    target_date: date | None = None
    habit_ids: list[int] | None = None
    settings: dict | None = None
    tags: list[str] | None = None
    category: str | None = None
    motivation: str | None = None
    notes: str | None = None


class GoalProgressCreate(BaseModel):
    class Config:
        use_enum_values = True
        validate_default = True

    value: float
    date: date
    notes: str | None = None
    mood: int | None = Field(default=None, ge=1, le=10)
    progress_type: ProgressType = ProgressType.MANUAL
    metadata: dict | None = None


class GoalResponse(BaseModel):
    id: int
    user_id: int
    title: str
    description: str | None
    type: str
    status: str
    difficulty: str
    priority: str
    specific: str | None
    measurable: str | None
    achievable: str | None
    relevant: str | None
    time_bound: str | None
    target_value: float | None
    current_value: float
    progress_percentage: float
    start_date: date
    target_date: date
    completed_date: date | None
    milestones: list | None
    achievements: list | None
    habit_ids: list | None
    settings: dict | None
    tags: list | None
    category: str | None
    motivation: str | None
    notes: str | None
    last_activity_at: datetime | None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class GoalProgressResponse(BaseModel):
    id: int
    goal_id: int
    value: float
    previous_value: float
    change: float
    percentage_change: float
    date: date
    notes: str | None
    mood: int | None
    progress_type: str
    metadata: dict | None = Field(default=None, validation_alias=AliasChoices("meta", "metadata"))
    created_at: datetime

    class Config:
        from_attributes = True
