"""Authentication-related Pydantic schemas."""

from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from agencyhub.core.permissions import Viewer
from agencyhub.db.enums import ViewerKind


class TokenPayload(BaseModel):
    """Decoded JWT payload structure."""
    sub: UUID  # user_id
    agency_id: UUID
    viewer: ViewerKind
    token_version: int


class UserSession(BaseModel):
    """
    Full session context for authenticated requests.

    Returned by the get_current_session dependency; carries everything the
    service layer needs for tenant scoping and capability checks.
    """
    user_id: UUID
    agency_id: UUID
    viewer_kind: ViewerKind  # Validated enum
    email: str
    name: str

    @property
    def viewer(self) -> Viewer:
        return Viewer(kind=self.viewer_kind, user_id=self.user_id, agency_id=self.agency_id)


class SignupRequest(BaseModel):
    """Create an agency together with its owner account."""
    agency_name: str = Field(..., min_length=2, max_length=255)
    name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)
    agency_id: UUID | None = None  # Pick a tenant when the user belongs to several


class MeResponse(BaseModel):
    """Response schema for GET /auth/me endpoint."""
    user_id: UUID
    email: str
    name: str
    avatar_path: str | None
    agency_id: UUID
    agency_name: str
    agency_slug: str
    agency_tier: str
    viewer: ViewerKind


class ProfileUpdate(BaseModel):
    name: str = Field(..., max_length=255)


class PasswordChange(BaseModel):
    """Length and match rules are enforced in the service."""
    current_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., max_length=128)
    password_confirmation: str = Field(..., max_length=128)
