"""Invitation-related Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from agencyhub.db.enums import InvitationKind


class StaffInviteCreate(BaseModel):
    """Invite a staff member into the agency."""
    email: EmailStr

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        """Normalize email to lowercase."""
        return v.lower()


class ClientInviteCreate(StaffInviteCreate):
    """Invite a client into a project."""
    project_id: UUID


class InviteRead(BaseModel):
    """Pending invitation as listed to staff (token never included)."""
    id: UUID
    kind: InvitationKind
    email: str
    project_id: UUID | None = None
    expires_at: datetime | None
    created_at: datetime


class InviteCreated(InviteRead):
    """Returned once on creation so the link can be delivered."""
    invitation_url: str


class InviteDetails(BaseModel):
    """Public details shown on the acceptance page."""
    kind: InvitationKind
    email: str
    agency_name: str
    project_name: str | None = None
    expires_at: datetime | None


class InviteAccept(BaseModel):
    """
    Accept an invitation.

    Length and match rules are enforced in the service so each failure gets
    a domain-specific message.
    """
    name: str = Field(..., max_length=255)
    password: str = Field(..., max_length=128)
    password_confirmation: str = Field(..., max_length=128)
