"""Pydantic schemas for request messages."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class MessageCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=10000)
    is_internal: bool = False


class MessageUpdate(BaseModel):
    content: str = Field(..., min_length=1, max_length=10000)


class MessageRead(BaseModel):
    id: UUID
    request_id: UUID
    user_id: UUID
    author_name: str | None = None
    content: str
    is_internal: bool
    created_at: datetime
    updated_at: datetime
    is_edited: bool = False
