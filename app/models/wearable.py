"""Wearable devices and the health data they report."""

from datetime import datetime
from enum import Enum
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    Boolean,
    JSON,
    ForeignKey,
    Index,
    UniqueConstraint,
)

from app.core.database import Base


class WearableProvider(str, Enum):
    FITBIT = "fitbit"
    APPLE_HEALTH = "apple_health"
    GOOGLE_FIT = "google_fit"
    GARMIN = "garmin"
    OURA = "oura"
    SAMSUNG_HEALTH = "samsung_health"
    WITHINGS = "withings"
    PELOTON = "peloton"
    STRAVA = "strava"
    CUSTOM = "custom"


class DeviceType(str, Enum):
    FITNESS_TRACKER = "fitness_tracker"
    SMARTWATCH = "smartwatch"
    HEART_RATE_MONITOR = "heart_rate_monitor"
    SLEEP_TRACKER = "sleep_tracker"
    ACTIVITY_TRACKER = "activity_tracker"
    WEIGHT_SCALE = "weight_scale"
    BLOOD_PRESSURE_MONITOR = "blood_pressure_monitor"
    GLUCOSE_MONITOR = "glucose_monitor"
    OXYGEN_SATURATION_MONITOR = "oxygen_saturation_monitor"
    TEMPERATURE_MONITOR = "temperature_monitor"


class ConnectionStatus(str, Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    PENDING = "pending"
    ERROR = "error"
    EXPIRED = "expired"


class HealthDataType(str, Enum):
    STEPS = "steps"
    HEART_RATE = "heart_rate"
    SLEEP = "sleep"
    CALORIES = "calories"
    DISTANCE = "distance"
    WEIGHT = "weight"
    BLOOD_PRESSURE = "blood_pressure"
    GLUCOSE = "glucose"
    OXYGEN_SATURATION = "oxygen_saturation"
    TEMPERATURE = "temperature"
    ACTIVE_MINUTES = "active_minutes"
    RESTING_HEART_RATE = "resting_heart_rate"
    SLEEP_DURATION = "sleep_duration"
    SLEEP_QUALITY = "sleep_quality"
    SLEEP_STAGES = "sleep_stages"
    EXERCISE = "exercise"
    WORKOUT = "workout"
    STRESS = "stress"
    MOOD = "mood"
    HYDRATION = "hydration"
    NUTRITION = "nutrition"
    CUSTOM = "custom"


class DataQuality(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    UNKNOWN = "unknown"


DEFAULT_SYNC_SETTINGS = {
    "steps": True,
    "heart_rate": True,
    "sleep": True,
    "calories": True,
    "distance": True,
    "weight": False,
    "blood_pressure": False,
    "glucose": False,
    "oxygen_saturation": False,
    "temperature": False,
    "custom_metrics": [],
}


class WearableDevice(Base):
    """A connected wearable. One per provider per user."""

    __tablename__ = "wearable_devices"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    provider = Column(String, nullable=False)
    type = Column(String, nullable=False)
    name = Column(String, nullable=False)
    model = Column(String, nullable=True)
    external_device_id = Column(String, nullable=True)
    status = Column(String, nullable=False, default=ConnectionStatus.PENDING.value)
    meta = Column("metadata", JSON, nullable=True)  # firmware, battery, timezone, ...
    capabilities = Column(JSON, nullable=True)
    sync_settings = Column(JSON, nullable=True)
    last_sync_at = Column(DateTime, nullable=True)
    last_data_received_at = Column(DateTime, nullable=True)
    auth_tokens = Column(JSON, nullable=True)
    token_expires_at = Column(DateTime, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (UniqueConstraint("user_id", "provider", name="uix_wearable_user_provider"),)


class HealthData(Base):
    """A single health reading. The device link is cleared when the device is removed."""

    __tablename__ = "health_data"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    device_id = Column(Integer, ForeignKey("wearable_devices.id", ondelete="SET NULL"), nullable=True)
    type = Column(String, nullable=False)
    timestamp = Column(DateTime, nullable=False)
    value = Column(JSON, nullable=False)  # number, or a mapping such as {"systolic": .., "diastolic": ..}
    unit = Column(String, nullable=True)
    quality = Column(String, nullable=False, default=DataQuality.UNKNOWN.value)
    meta = Column("metadata", JSON, nullable=True)
    source_data = Column(JSON, nullable=True)
    external_id = Column(String, nullable=True)
    is_processed = Column(Boolean, nullable=False, default=False)
    processed_data = Column(JSON, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("ix_health_data_user_type_ts", "user_id", "type", "timestamp"),
        Index("ix_health_data_device_ts", "device_id", "timestamp"),
    )
