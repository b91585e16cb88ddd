"""Pydantic schemas for time entries."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field, model_validator


class TimeEntryCreate(BaseModel):
    """
    Log time against a request.

    Give either duration_minutes or a free-text duration ("1h30m", "1.5").
    """
    duration_minutes: int | None = Field(None, ge=1, le=24 * 60)
    duration: str | None = Field(None, max_length=32)
    description: str | None = Field(None, max_length=2000)
    tracked_date: date | None = None

    @model_validator(mode="after")
    def _one_duration(self):
        if self.duration_minutes is None and not self.duration:
            raise ValueError("duration_minutes or duration is required")
        return self


class TimeEntryUpdate(BaseModel):
    duration_minutes: int | None = Field(None, ge=1, le=24 * 60)
    duration: str | None = Field(None, max_length=32)
    description: str | None = Field(None, max_length=2000)
    tracked_date: date | None = None


class TimeEntryRead(BaseModel):
    id: UUID
    request_id: UUID
    user_id: UUID
    user_name: str | None = None
    duration_minutes: int
    duration_display: str
    description: str | None
    tracked_date: date
    created_at: datetime


class TimeSummary(BaseModel):
    total_minutes: int
    total_display: str
    entries: list[TimeEntryRead]
