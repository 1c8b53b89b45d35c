# Database models
from app.models.user import User, UserRole
from app.models.habit import (
    Habit,
    HabitLog,
    HabitCategory,
    HabitFrequency,
    FlowerType,
    LogStatus,
)
from app.models.goal import (
    Goal,
    GoalProgress,
    GoalStatus,
    GoalType,
    GoalDifficulty,
    GoalPriority,
    ProgressType,
)
from app.models.wearable import (
    WearableDevice,
    HealthData,
    WearableProvider,
    DeviceType,
    ConnectionStatus,
    HealthDataType,
    DataQuality,
)
from app.models.integration import (
    CalendarIntegration,
    TaskIntegration,
    SmartHomeIntegration,
    SyncStatus,
)
from app.models.system import JobRecord, JobStatus, CacheEntry

__all__ = [
    "User",
    "UserRole",
    "Habit",
    "HabitLog",
    "HabitCategory",
    "HabitFrequency",
    "FlowerType",
    "LogStatus",
    "Goal",
    "GoalProgress",
    "GoalStatus",
    "GoalType",
    "GoalDifficulty",
    "GoalPriority",
    "ProgressType",
    "WearableDevice",
    "HealthData",
    "WearableProvider",
    "DeviceType",
    "ConnectionStatus",
    "HealthDataType",
    "DataQuality",
    "CalendarIntegration",
    "TaskIntegration",
    "SmartHomeIntegration",
    "SyncStatus",
    "JobRecord",
    "JobStatus",
    "CacheEntry",
]
