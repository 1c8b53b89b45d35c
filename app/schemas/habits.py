"""Request and response models for habits and habit logs."""

from datetime import date, datetime
from pydantic import AliasChoices, BaseModel, Field, field_validator

from app.models.habit import HabitCategory, HabitFrequency, FlowerType, LogStatus
from app.schemas.common import PatchModel


class CustomSchedule(BaseModel):
    days_of_week: list[int] | None = None  # 0 = Sunday
    custom_interval: int | None = Field(default=None, ge=1)
    time_of_day: str | None = None

    @field_validator("days_of_week")
    @classmethod
    def validate_days(cls, v: list[int] | None) -> list[int] | None:
        if v is not None and any(d < 0 or d > 6 for d in v):
            raise ValueError("days_of_week values must be between 0 and 6")
        return v


class HabitCreate(BaseModel):
    class Config:
        use_enum_values = True
        validate_default = True

    title: str = Field(min_length=1, max_length=200)
    description: str | None = None
    category: HabitCategory = HabitCategory.OTHER
    frequency: HabitFrequency = HabitFrequency.DAILY
    target_count: int = Field(default=1, ge=1)
    start_date: date | None = None
    end_date: date | None = None
    is_public: bool = False
    flower_type: FlowerType = FlowerType.DAISY
    custom_schedule: CustomSchedule | None = None
    reminders: list[dict] | None = None


class HabitUpdate(PatchModel):
    class Config:
        use_enum_values = True
        validate_default = True

    not_null = ("title", "category", "frequency", "target_count", "start_date", "is_active", "is_public", "flower_type")

    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    category: HabitCategory | None = None
    frequency: HabitFrequency | None = None
    target_count: int | None = Field(default=None, ge=1)
    start_date: date | None = None
    end_date: date | None = None
    is_active: bool | None = None
    is_public: bool | None = None
    flower_type: FlowerType | None = None
    custom_schedule: CustomSchedule | None = None
    reminders: list[dict] | None = None


class HabitResponse(BaseModel):
    id: int
    user_id: int
    title: str
    description: str | None
    category: str
    frequency: str
    target_count: int
    current_streak: int
    longest_streak: int
    total_completions: int
    start_date: date
    end_date: date | None
    is_active: bool
    is_public: bool
    flower_type: str
    growth_stage: int
    growth_label: str
    health_points: int
    water_level: int
    is_blooming: bool
    is_wilting: bool
    needs_water: bool
    custom_schedule: dict | None
    reminders: list | None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class HabitLogCreate(BaseModel):
    class Config:
        use_enum_values = True
        validate_default = True

    habit_id: int
    date: date
    status: LogStatus = LogStatus.COMPLETED
    completed_count: int = Field(default=1, ge=0)
    target_count: int | None = Field(default=None, ge=1)
    notes: str | None = None
    metadata: dict | None = None


class HabitLogResponse(BaseModel):
    id: int
    habit_id: int
    date: date
    status: str
    completed_count: int
    target_count: int
    notes: str | None
    streak: int
    is_perfect_day: bool
    metadata: dict | None = Field(default=None, validation_alias=AliasChoices("meta", "metadata"))
    created_at: datetime

    class Config:
        from_attributes = True
