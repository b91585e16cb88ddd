"""SQLAlchemy ORM models."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from agencyhub.db.base import Base
from agencyhub.db.enums import RequestPriority, RequestType
from agencyhub.db.types import utcnow


class RequestTemplate(Base):
    """
    Pre-defined request content.

    Pure data: used only to pre-fill a new request, never linked to the
    requests created from it.
    """

    __tablename__ = "request_templates"
    __table_args__ = (
        Index("idx_request_templates_agency", "agency_id", "is_active", "sort_order"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    agency_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("agencies.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    default_type: Mapped[str] = mapped_column(
        String(20), default=RequestType.BUG.value, nullable=False
    )
    default_priority: Mapped[str] = mapped_column(
        String(20), default=RequestPriority.NORMAL.value, nullable=False
    )
    title_template: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description_template: Mapped[str] = mapped_column(Text, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, onupdate=utcnow, nullable=False
    )
    deleted_at: Mapped[datetime | None] = mapped_column(nullable=True)
