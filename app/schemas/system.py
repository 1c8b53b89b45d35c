"""Request and response models for the job queue."""

from datetime import datetime
from typing import Any
from pydantic import BaseModel, Field


class JobCreate(BaseModel):
    name: str
    data: dict[str, Any] = {}
    max_attempts: int | None = Field(default=None, ge=1, le=10)


class JobResponse(BaseModel):
    id: int
    queue: str
    name: str
    data: dict | None
    status: str
    attempts_made: int
    max_attempts: int
    result: Any | None
    error: str | None
    created_at: datetime
    run_at: datetime | None
    started_at: datetime | None
    finished_at: datetime | None

    class Config:
        from_attributes = True
