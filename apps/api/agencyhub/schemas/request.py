"""Pydantic schemas for requests."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from agencyhub.db.enums import (
    DueDateFilter,
    DueDateState,
    RequestPriority,
    RequestSortField,
    RequestStatus,
    RequestType,
)
from agencyhub.schemas.tag import TagRead


class RequestCreate(BaseModel):
    """
    Request to file a new request into a project.

    When template_id is given, missing fields are filled from the template.
    """
    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, min_length=1, max_length=20000)
    type: RequestType | None = None
    priority: RequestPriority | None = None
    due_date: date | None = None
    estimated_hours: Decimal | None = Field(None, ge=0, le=9999)
    template_id: UUID | None = None


class RequestUpdate(BaseModel):
    """Partial update. Omitted fields are left unchanged."""
    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, min_length=1, max_length=20000)
    type: RequestType | None = None
    priority: RequestPriority | None = None
    status: RequestStatus | None = None
    due_date: date | None = None
    estimated_hours: Decimal | None = Field(None, ge=0, le=9999)


class AssigneeRead(BaseModel):
    user_id: UUID
    name: str
    assigned_at: datetime


class RequestRead(BaseModel):
    """Full request response."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    project_id: UUID
    title: str
    description: str
    type: RequestType
    priority: RequestPriority
    status: RequestStatus
    due_date: date | None
    due_state: DueDateState
    estimated_hours: Decimal | None = None
    created_by: UUID
    created_by_name: str | None = None
    completed_at: datetime | None
    completed_by: UUID | None
    created_at: datetime
    updated_at: datetime
    assignees: list[AssigneeRead] = []
    tags: list[TagRead] = []


class RequestListResponse(BaseModel):
    items: list[RequestRead]
    total: int
    page: int
    per_page: int
    pages: int


class RequestFilters(BaseModel):
    """Combinable list filters; every given filter must hold (AND)."""
    status: list[RequestStatus] | None = None
    type: list[RequestType] | None = None
    priority: list[RequestPriority] | None = None
    assigned: str | None = None  # "unassigned", "me", or a user id
    due: DueDateFilter | None = None
    tag_ids: list[UUID] | None = None  # any of
    search: str | None = Field(None, max_length=200)
    sort: RequestSortField = RequestSortField.CREATED_AT
    descending: bool = True


class AssignmentCreate(BaseModel):
    user_id: UUID


class ActivityRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    request_id: UUID
    user_id: UUID | None  # None when applied by an automation rule
    activity_type: str
    details: dict
    created_at: datetime
