"""Request and response models for calendar, task and smart-home integrations."""

from datetime import datetime
from typing import Any
from pydantic import AliasChoices, BaseModel, Field, field_validator

from app.models.integration import (
    ActionType,
    CalendarEventType,
    CalendarProvider,
    SmartHomeDeviceType,
    SmartHomeProvider,
    SyncStatus,
    TaskPriority,
    TaskProvider,
    TriggerType,
)
from app.schemas.common import PatchModel, to_naive_utc


class CalendarIntegrationCreate(BaseModel):
    class Config:
        use_enum_values = True
        validate_default = True

    provider: CalendarProvider
    external_calendar_id: str
    calendar_name: str = Field(min_length=1)
    calendar_description: str | None = None
    calendar_color: str | None = None
    timezone: str | None = None
    sync_settings: dict | None = None
    credentials: dict | None = None
    metadata: dict | None = None


class CalendarIntegrationUpdate(PatchModel):
    class Config:
        use_enum_values = True
        validate_default = True

    not_null = ("calendar_name", "sync_status", "is_active")

    calendar_name: str | None = Field(default=None, min_length=1)
    calendar_description: str | None = None
    calendar_color: str | None = None
    timezone: str | None = None
    sync_status: SyncStatus | None = None
    sync_settings: dict | None = None
    credentials: dict | None = None
    metadata: dict | None = None
    is_active: bool | None = None


class CalendarEventCreate(BaseModel):
    class Config:
        use_enum_values = True
        validate_default = True

    title: str
    description: str | None = None
    start_time: datetime
    end_time: datetime | None = None
    event_type: CalendarEventType = CalendarEventType.HABIT_REMINDER
    habit_id: int | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_utc(cls, v: datetime | None) -> datetime | None:
        return to_naive_utc(v)


class TaskIntegrationCreate(BaseModel):
    class Config:
        use_enum_values = True
        validate_default = True

    provider: TaskProvider
    external_project_id: str
    project_name: str = Field(min_length=1)
    project_description: str | None = None
    project_color: str | None = None
    sync_settings: dict | None = None
    credentials: dict | None = None
    metadata: dict | None = None


class TaskIntegrationUpdate(PatchModel):
    class Config:
        use_enum_values = True
        validate_default = True

    not_null = ("project_name", "sync_status", "is_active")

    project_name: str | None = Field(default=None, min_length=1)
    project_description: str | None = None
    project_color: str | None = None
    sync_status: SyncStatus | None = None
    sync_settings: dict | None = None
    credentials: dict | None = None
    metadata: dict | None = None
    is_active: bool | None = None


class ExternalTask(BaseModel):
    """A task as pulled from the task manager."""

    class Config:
        use_enum_values = True
        validate_default = True

    external_id: str | None = None
    title: str = Field(min_length=1)
    description: str | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    tags: list[str] = []
    due_date: datetime | None = None

    @field_validator("due_date")
    @classmethod
    def normalize_utc(cls, v: datetime | None) -> datetime | None:
        return to_naive_utc(v)


class SmartHomeDevice(BaseModel):
    class Config:
        use_enum_values = True
        validate_default = True

    id: str
    name: str
    type: SmartHomeDeviceType
    capabilities: list[str] = []
    room: str | None = None
    is_online: bool = True
    metadata: dict | None = None


class RuleAction(BaseModel):
    class Config:
        use_enum_values = True
        validate_default = True

    device_id: str
    action_type: ActionType
    parameters: dict | None = None
    delay: int | None = Field(default=None, ge=0)  # seconds


class AutomationRuleCreate(BaseModel):
    class Config:
        use_enum_values = True
        validate_default = True

    name: str = Field(min_length=1)
    description: str | None = None
    trigger_type: TriggerType
    trigger_conditions: dict = {}
    actions: list[RuleAction] = []
    is_active: bool = True
    priority: int = 0


class AutomationRuleUpdate(PatchModel):
    class Config:
        use_enum_values = True
        validate_default = True

    not_null = ("name", "trigger_type", "trigger_conditions", "actions", "is_active", "priority")

    name: str | None = None
    description: str | None = None
    trigger_type: TriggerType | None = None
    trigger_conditions: dict | None = None
    actions: list[RuleAction] | None = None
    is_active: bool | None = None
    priority: int | None = None


class TriggerRequest(BaseModel):
    class Config:
        use_enum_values = True
        validate_default = True

    trigger_type: TriggerType
    data: dict[str, Any] = {}


class SmartHomeIntegrationCreate(BaseModel):
    class Config:
        use_enum_values = True
        validate_default = True

    provider: SmartHomeProvider
    external_account_id: str
    account_name: str = Field(min_length=1)
    account_description: str | None = None
    account_icon: str | None = None
    credentials: dict | None = None
    devices: list[SmartHomeDevice] | None = None
    automation_rules: list[AutomationRuleCreate] | None = None
    metadata: dict | None = None


class SmartHomeIntegrationUpdate(PatchModel):
    not_null = ("account_name", "is_active")

    account_name: str | None = Field(default=None, min_length=1)
    account_description: str | None = None
    account_icon: str | None = None
    credentials: dict | None = None
    metadata: dict | None = None
    is_active: bool | None = None


class _IntegrationBase(BaseModel):
    id: int
    provider: str
    sync_status: str | None = None
    metadata: dict | None = Field(default=None, validation_alias=AliasChoices("meta", "metadata"))
    last_sync_at: datetime | None
    next_sync_at: datetime | None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CalendarIntegrationResponse(_IntegrationBase):
    external_calendar_id: str
    calendar_name: str
    calendar_description: str | None
    calendar_color: str | None
    timezone: str | None
    sync_settings: dict | None


class TaskIntegrationResponse(_IntegrationBase):
    external_project_id: str
    project_name: str
    project_description: str | None
    project_color: str | None
    sync_settings: dict | None


class SmartHomeIntegrationResponse(_IntegrationBase):
    external_account_id: str
    account_name: str
    account_description: str | None
    account_icon: str | None
    devices: list | None
    automation_rules: list | None


class IntegrationStatus(BaseModel):
    status: str
    last_sync: datetime | None
    next_sync: datetime | None
    error_count: int
    task_count: int | None = None
    device_count: int | None = None
