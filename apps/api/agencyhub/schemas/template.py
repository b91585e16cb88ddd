"""Pydantic schemas for request templates."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from agencyhub.db.enums import RequestPriority, RequestType


class TemplateCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(None, max_length=2000)
    default_type: RequestType = RequestType.BUG
    default_priority: RequestPriority = RequestPriority.NORMAL
    title_template: str | None = Field(None, max_length=255)
    description_template: str = Field(..., min_length=1, max_length=20000)
    is_active: bool = True
    sort_order: int = 0


class TemplateUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, max_length=2000)
    default_type: RequestType | None = None
    default_priority: RequestPriority | None = None
    title_template: str | None = Field(None, max_length=255)
    description_template: str | None = Field(None, min_length=1, max_length=20000)
    is_active: bool | None = None
    sort_order: int | None = None


class TemplateRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str | None
    default_type: RequestType
    default_priority: RequestPriority
    title_template: str | None
    description_template: str
    is_active: bool
    sort_order: int
    created_at: datetime
    updated_at: datetime
