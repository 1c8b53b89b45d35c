"""Request and response models for wearable devices and health data."""

from datetime import datetime
from typing import Any, Literal
from pydantic import AliasChoices, BaseModel, Field, field_validator

from app.models.wearable import (
    ConnectionStatus,
    DataQuality,
    DeviceType,
    HealthDataType,
    WearableProvider,
)
from app.schemas.common import PatchModel, to_naive_utc


class DeviceConnect(BaseModel):
    class Config:
        use_enum_values = True
        validate_default = True

    provider: WearableProvider
    type: DeviceType
    name: str = Field(min_length=1, max_length=100)
    model: str | None = None
    external_device_id: str | None = None
    metadata: dict | None = None
    capabilities: list[str] | None = None
    sync_settings: dict | None = None
    auth_tokens: dict | None = None
    token_expires_at: datetime | None = None

    @field_validator("token_expires_at")
    @classmethod
    def normalize_utc(cls, v: datetime | None) -> datetime | None:
        return to_naive_utc(v)


class DeviceUpdate(PatchModel):
    class Config:
        use_enum_values = True
        validate_default = True

    not_null = ("name", "status", "is_active")

    name: str | None = Field(default=None, min_length=1, max_length=100)
    model: str | None = None
    status: ConnectionStatus | None = None
    metadata: dict | None = None
    capabilities: list[str] | None = None
    sync_settings: dict | None = None
    auth_tokens: dict | None = None
    token_expires_at: datetime | None = None
    is_active: bool | None = None
    error_message: str | None = None

    @field_validator("token_expires_at")
    @classmethod
    def normalize_utc(cls, v: datetime | None) -> datetime | None:
        return to_naive_utc(v)


class ConnectionStatusUpdate(BaseModel):
    class Config:
        use_enum_values = True
        validate_default = True

    status: ConnectionStatus
    error_message: str | None = None


class SyncSettingsUpdate(BaseModel):
    device_id: int
    sync_settings: dict


class DeviceResponse(BaseModel):
    id: int
    provider: str
    type: str
    name: str
    model: str | None
    external_device_id: str | None
    status: str
    metadata: dict | None = Field(default=None, validation_alias=AliasChoices("meta", "metadata"))
    capabilities: list | None
    sync_settings: dict | None
    last_sync_at: datetime | None
    last_data_received_at: datetime | None
    token_expires_at: datetime | None
    is_active: bool
    error_message: str | None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class HealthDataCreate(BaseModel):
    class Config:
        use_enum_values = True
        validate_default = True

    type: HealthDataType
    timestamp: datetime
    value: Any
    unit: str | None = None
    quality: DataQuality = DataQuality.UNKNOWN
    device_id: int | None = None
    metadata: dict | None = None
    source_data: dict | None = None
    external_id: str | None = None
    notes: str | None = None

    @field_validator("timestamp")
    @classmethod
    def normalize_utc(cls, v: datetime | None) -> datetime | None:
        return to_naive_utc(v)


class HealthDataUpdate(PatchModel):
    class Config:
        use_enum_values = True
        validate_default = True

    not_null = ("value", "quality")

    value: Any | None = None
    unit: str | None = None
    quality: DataQuality | None = None
    metadata: dict | None = None
    notes: str | None = None


class HealthDataQuery(BaseModel):
    class Config:
        use_enum_values = True
        validate_default = True

    type: HealthDataType | None = None
    types: list[HealthDataType] | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    device_id: int | None = None
    provider: WearableProvider | None = None
    quality: DataQuality | None = None
    limit: int = Field(default=100, ge=1, le=1000)
    offset: int = Field(default=0, ge=0)
    order: Literal["asc", "desc"] = "desc"

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_utc(cls, v: datetime | None) -> datetime | None:
        return to_naive_utc(v)


class HealthDataResponse(BaseModel):
    id: int
    device_id: int | None
    type: str
    timestamp: datetime
    value: Any
    unit: str | None
    quality: str
    metadata: dict | None = Field(default=None, validation_alias=AliasChoices("meta", "metadata"))
    external_id: str | None
    is_processed: bool
    processed_data: dict | None
    notes: str | None
    created_at: datetime

    class Config:
        from_attributes = True


class HealthDataPage(BaseModel):
    data: list[HealthDataResponse]
    total: int
    limit: int
    offset: int
