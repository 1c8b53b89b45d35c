"""Shared request model bases and validators."""

from datetime import datetime, timezone
from typing import ClassVar
from pydantic import BaseModel, model_validator


def to_naive_utc(value: datetime | None) -> datetime | None:
    """Timestamps are stored as naive UTC; convert offset-bearing input first."""
    if value is not None and value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class PatchModel(BaseModel):
    """Partial update body.

    Fields listed in ``not_null`` back NOT NULL columns: they may be left
    out of the request but not sent as an explicit null.
    """

    not_null: ClassVar[tuple[str, ...]] = ()

    @model_validator(mode="after")
    def reject_explicit_nulls(self):
        nulled = [f for f in self.not_null if f in self.model_fields_set and getattr(self, f) is None]
        if nulled:
            raise ValueError(f"{', '.join(nulled)} cannot be null")
        return self
