"""SQLAlchemy ORM models."""

from __future__ import annotations

from typing import TYPE_CHECKING

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from agencyhub.db.base import Base
from agencyhub.db.enums import AgencyRole, Tier
from agencyhub.db.types import utcnow

if TYPE_CHECKING:
    from agencyhub.db.models import Project


class Agency(Base):
    """
    The tenant organization.

    Owns projects, staff memberships, tags, request templates and automation
    rules. Every domain query is scoped by agency_id.
    """

    __tablename__ = "agencies"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    logo_path: Mapped[str | None] = mapped_column(String(500), nullable=True)
    timezone: Mapped[str] = mapped_column(String(50), default="UTC", nullable=False)

    # Subscription
    tier: Mapped[str] = mapped_column(String(20), default=Tier.FREE.value, nullable=False)
    payment_customer_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, onupdate=utcnow, nullable=False
    )

    members: Mapped[list["AgencyMember"]] = relationship(
        back_populates="agency", cascade="all, delete-orphan"
    )
    projects: Mapped[list["Project"]] = relationship(back_populates="agency")


class User(Base):
    """An account; agency staff and clients alike."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    avatar_path: Mapped[str | None] = mapped_column(String(500), nullable=True)
    password_hash: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Bumped to revoke all outstanding session tokens
    token_version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)


class AgencyMember(Base):
    """
    Staff membership in an agency, doubling as the staff invitation record.

    An invited-but-not-joined member has user_id NULL and an invitation_token.
    Acceptance sets user_id, nulls the token and keeps its hash so a replayed
    link can be told apart from a bogus one.
    """

    __tablename__ = "agency_members"
    __table_args__ = (
        UniqueConstraint("agency_id", "user_id", name="uq_agency_member_user"),
        Index("idx_agency_members_token", "invitation_token"),
        Index("idx_agency_members_consumed", "consumed_token_hash"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    agency_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("agencies.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=True
    )
    role: Mapped[str] = mapped_column(
        String(20), default=AgencyRole.STAFF.value, nullable=False
    )

    # Invitation
    invitation_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    invitation_token: Mapped[str | None] = mapped_column(String(128), nullable=True)
    invitation_expires_at: Mapped[datetime | None] = mapped_column(nullable=True)
    consumed_token_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    invited_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    joined_at: Mapped[datetime | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    agency: Mapped["Agency"] = relationship(back_populates="members")
    user: Mapped["User | None"] = relationship(foreign_keys=[user_id])
