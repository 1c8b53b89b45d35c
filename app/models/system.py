"""Job queue records and the key/value cache table."""

from datetime import datetime
from enum import Enum
from sqlalchemy import Column, Integer, String, Text, DateTime, JSON, Index

from app.core.database import Base


class JobStatus(str, Enum):
    WAITING = "waiting"
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"
    DELAYED = "delayed"


class JobRecord(Base):
    """A queued background job and its outcome."""

    __tablename__ = "job_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    queue = Column(String, nullable=False)  # "notifications", "data-sync", "analytics", "default"
    name = Column(String, nullable=False)
    data = Column(JSON, nullable=True)
    status = Column(String, nullable=False, default=JobStatus.WAITING.value)
    attempts_made = Column(Integer, nullable=False, default=0)
    max_attempts = Column(Integer, nullable=False, default=3)
    result = Column(JSON, nullable=True)
    error = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    run_at = Column(DateTime, nullable=True)
    started_at = Column(DateTime, nullable=True)
    finished_at = Column(DateTime, nullable=True)

    __table_args__ = (Index("ix_job_records_queue_status", "queue", "status"),)


class CacheEntry(Base):
    """Cached JSON value with an optional expiry."""

    __tablename__ = "cache_entries"

    key = Column(String, primary_key=True)
    value = Column(JSON, nullable=True)
    expires_at = Column(DateTime, nullable=True, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
