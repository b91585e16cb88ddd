"""Pydantic schemas for satisfaction ratings."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class RatingSubmit(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    feedback: str | None = Field(None, max_length=2000)


class RatingRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    request_id: UUID
    user_id: UUID
    rating: int
    feedback: str | None
    created_at: datetime
    updated_at: datetime


class RatingStats(BaseModel):
    average: float | None
    count: int
