"""Calendar, task-manager and smart-home integration records."""

from datetime import datetime
from enum import Enum
from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, JSON, ForeignKey

from app.core.database import Base


class SyncStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    ERROR = "error"
    DISCONNECTED = "disconnected"


class CalendarProvider(str, Enum):
    GOOGLE = "google"
    OUTLOOK = "outlook"
    APPLE = "apple"
    CALDAV = "caldav"
    ICS = "ics"


class CalendarEventType(str, Enum):
    HABIT_REMINDER = "habit_reminder"
    HABIT_SESSION = "habit_session"
    GOAL_DEADLINE = "goal_deadline"
    MILESTONE = "milestone"
    CUSTOM = "custom"


class TaskProvider(str, Enum):
    TODOIST = "todoist"
    ASANA = "asana"
    TRELLO = "trello"
    NOTION = "notion"
    MICROSOFT_TODO = "microsoft_todo"
    CLICKUP = "clickup"
    JIRA = "jira"
    LINEAR = "linear"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


TASK_PRIORITY_RANK = {"low": 1, "medium": 2, "high": 3, "urgent": 4}


class TaskStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    CANCELLED = "cancelled"


class SmartHomeProvider(str, Enum):
    PHILIPS_HUE = "philips_hue"
    SMART_THINGS = "smart_things"
    HOME_ASSISTANT = "home_assistant"
    IFTTT = "ifttt"
    ZAPIER = "zapier"
    ALEXA = "alexa"
    GOOGLE_HOME = "google_home"
    APPLE_HOMEKIT = "apple_homekit"


class SmartHomeDeviceType(str, Enum):
    LIGHT = "light"
    SWITCH = "switch"
    SENSOR = "sensor"
    THERMOSTAT = "thermostat"
    LOCK = "lock"
    CAMERA = "camera"
    SPEAKER = "speaker"
    APPLIANCE = "appliance"
    WEARABLE = "wearable"


class TriggerType(str, Enum):
    HABIT_START = "habit_start"
    HABIT_COMPLETE = "habit_complete"
    HABIT_MISSED = "habit_missed"
    GOAL_ACHIEVED = "goal_achieved"
    STREAK_MILESTONE = "streak_milestone"
    TIME_BASED = "time_based"
    LOCATION_BASED = "location_based"
    CONDITION_BASED = "condition_based"


class ActionType(str, Enum):
    TURN_ON = "turn_on"
    TURN_OFF = "turn_off"
    TOGGLE = "toggle"
    SET_COLOR = "set_color"
    SET_BRIGHTNESS = "set_brightness"
    SET_TEMPERATURE = "set_temperature"
    PLAY_SOUND = "play_sound"
    SEND_NOTIFICATION = "send_notification"
    RECORD_VIDEO = "record_video"
    LOCK_UNLOCK = "lock_unlock"


DEFAULT_CALENDAR_SETTINGS = {
    "sync_habits": True,
    "sync_goals": True,
    "sync_milestones": True,
    "sync_reminders": True,
    "auto_create_events": True,
    "event_duration": 30,  # minutes
    "buffer_time": 5,  # minutes
    "working_hours": {"start": "09:00", "end": "17:00", "days": [1, 2, 3, 4, 5]},
}

DEFAULT_TASK_SETTINGS = {
    "sync_tasks": True,
    "sync_subtasks": True,
    "sync_comments": False,
    "sync_attachments": False,
    "auto_create_habits": False,
    "habit_creation_rules": {
        "task_duration": 30,
        "frequency": "daily",
        "priority_threshold": "medium",
        "tags": ["imported"],
    },
}


class CalendarIntegration(Base):
    """A linked external calendar."""

    __tablename__ = "calendar_integrations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    provider = Column(String, nullable=False)
    external_calendar_id = Column(String, nullable=False)
    calendar_name = Column(String, nullable=False)
    calendar_description = Column(Text, nullable=True)
    calendar_color = Column(String, nullable=True)
    timezone = Column(String, nullable=True)
    sync_status = Column(String, nullable=False, default=SyncStatus.ACTIVE.value)
    sync_settings = Column(JSON, nullable=True)
    credentials = Column(JSON, nullable=True)
    meta = Column("metadata", JSON, nullable=True)  # sync_errors, event_count, calendar_url
    last_sync_at = Column(DateTime, nullable=True)
    next_sync_at = Column(DateTime, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


class TaskIntegration(Base):
    """A linked task-manager project."""

    __tablename__ = "task_integrations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    provider = Column(String, nullable=False)
    external_project_id = Column(String, nullable=False)
    project_name = Column(String, nullable=False)
    project_description = Column(Text, nullable=True)
    project_color = Column(String, nullable=True)
    sync_status = Column(String, nullable=False, default=SyncStatus.ACTIVE.value)
    sync_settings = Column(JSON, nullable=True)
    credentials = Column(JSON, nullable=True)
    meta = Column("metadata", JSON, nullable=True)  # sync_errors, task_count, project_url
    last_sync_at = Column(DateTime, nullable=True)
    next_sync_at = Column(DateTime, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


class SmartHomeIntegration(Base):
    """A linked smart-home account with its devices and automation rules."""

    __tablename__ = "smart_home_integrations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    provider = Column(String, nullable=False)
    external_account_id = Column(String, nullable=False)
    account_name = Column(String, nullable=False)
    account_description = Column(Text, nullable=True)
    account_icon = Column(String, nullable=True)
    sync_status = Column(String, nullable=False, default=SyncStatus.ACTIVE.value)
    credentials = Column(JSON, nullable=True)  # access_token, api_key, webhook_url
    devices = Column(JSON, nullable=True)
    automation_rules = Column(JSON, nullable=True)
    meta = Column("metadata", JSON, nullable=True)  # sync_errors, device_count, automation_count
    last_sync_at = Column(DateTime, nullable=True)
    next_sync_at = Column(DateTime, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
