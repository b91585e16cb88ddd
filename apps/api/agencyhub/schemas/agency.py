"""Pydantic schemas for agencies and their members."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from agencyhub.db.enums import AgencyRole, Tier


class AgencyRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    slug: str
    logo_path: str | None
    timezone: str
    tier: Tier
    created_at: datetime


class AgencyUpdate(BaseModel):
    name: str | None = Field(None, min_length=2, max_length=255)
    timezone: str | None = Field(None, max_length=50)


class MemberRead(BaseModel):
    user_id: UUID
    name: str
    email: str
    role: AgencyRole
    joined_at: datetime | None
