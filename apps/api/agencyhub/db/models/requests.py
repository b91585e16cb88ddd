"""SQLAlchemy ORM models."""

from __future__ import annotations

from typing import TYPE_CHECKING

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from agencyhub.db.base import Base
from agencyhub.db.enums import RequestPriority, RequestStatus, RequestType, TagColor
from agencyhub.db.types import utcnow

if TYPE_CHECKING:
    from agencyhub.db.models import Project, SatisfactionRating, TimeEntry, User


class Request(Base):
    """
    A client-submitted work item.

    Invariants:
    - completed_at/completed_by are set iff status == complete
    - deleted_at marks a soft delete; soft-deleted rows never appear in listings
    """

    __tablename__ = "requests"
    __table_args__ = (
        Index("idx_requests_project_status", "project_id", "status"),
        Index("idx_requests_project_created", "project_id", "created_at"),
        Index("idx_requests_due", "project_id", "due_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(
        String(20), default=RequestType.BUG.value, nullable=False
    )
    priority: Mapped[str] = mapped_column(
        String(20), default=RequestPriority.NORMAL.value, nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(20), default=RequestStatus.SUBMITTED.value, nullable=False
    )
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    estimated_hours: Mapped[Decimal | None] = mapped_column(Numeric(6, 2), nullable=True)

    created_by: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )
    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    completed_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, onupdate=utcnow, nullable=False
    )
    deleted_at: Mapped[datetime | None] = mapped_column(nullable=True)

    project: Mapped["Project"] = relationship(back_populates="requests")
    author: Mapped["User"] = relationship(foreign_keys=[created_by])
    assignments: Mapped[list["RequestAssignment"]] = relationship(
        back_populates="request",
        cascade="all, delete-orphan",
        order_by="RequestAssignment.assigned_at",
    )
    tags: Mapped[list["Tag"]] = relationship(
        secondary="request_tags", order_by="Tag.name", viewonly=True
    )
    messages: Mapped[list["RequestMessage"]] = relationship(
        back_populates="request", cascade="all, delete-orphan"
    )
    time_entries: Mapped[list["TimeEntry"]] = relationship(
        back_populates="request", cascade="all, delete-orphan"
    )
    rating: Mapped["SatisfactionRating | None"] = relationship(
        back_populates="request", cascade="all, delete-orphan", uselist=False
    )


class RequestAssignment(Base):
    """Staff member responsible for a request. At most one row per (request, user)."""

    __tablename__ = "request_assignments"
    __table_args__ = (
        UniqueConstraint("request_id", "user_id", name="uq_request_assignment"),
        Index("idx_request_assignments_user", "user_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    request_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("requests.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    assigned_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    assigned_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    request: Mapped["Request"] = relationship(back_populates="assignments")
    user: Mapped["User"] = relationship(foreign_keys=[user_id])


class RequestMessage(Base):
    """
    Message on a request thread.

    is_internal partitions the thread: internal rows are staff-only and must
    never reach a client-scoped listing.
    """

    __tablename__ = "request_messages"
    __table_args__ = (
        Index("idx_request_messages_thread", "request_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    request_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("requests.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    is_internal: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, onupdate=utcnow, nullable=False
    )
    deleted_at: Mapped[datetime | None] = mapped_column(nullable=True)

    request: Mapped["Request"] = relationship(back_populates="messages")
    author: Mapped["User"] = relationship(foreign_keys=[user_id])


class Tag(Base):
    """Agency-scoped label. Names are unique per agency, case-insensitively."""

    __tablename__ = "tags"
    __table_args__ = (
        Index("idx_tags_agency_name", "agency_id", "name"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    agency_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("agencies.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    color: Mapped[str] = mapped_column(
        String(20), default=TagColor.GRAY.value, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)


class RequestTag(Base):
    """Request ↔ Tag join row."""

    __tablename__ = "request_tags"

    request_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("requests.id", ondelete="CASCADE"), primary_key=True
    )
    tag_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)


class RequestActivity(Base):
    """Append-only request history entry."""

    __tablename__ = "request_activity_log"
    __table_args__ = (
        Index("idx_request_activity_request", "request_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    request_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("requests.id", ondelete="CASCADE"), nullable=False
    )
    # NULL for automation-driven changes
    user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    activity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    details: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
