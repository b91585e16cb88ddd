"""Pydantic schemas for project notes."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class NoteCreate(BaseModel):
    title: str | None = Field(None, max_length=255)
    content: str = Field(..., min_length=1, max_length=50000)


class NoteUpdate(BaseModel):
    title: str | None = Field(None, max_length=255)
    content: str | None = Field(None, min_length=1, max_length=50000)
    is_pinned: bool | None = None


class NoteRead(BaseModel):
    id: UUID
    project_id: UUID
    user_id: UUID
    author_name: str | None = None
    title: str | None
    content: str
    is_pinned: bool
    created_at: datetime
    updated_at: datetime
