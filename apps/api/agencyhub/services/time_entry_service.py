"""Time entry service - minutes logged against requests by staff."""

from datetime import date
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from agencyhub.core.exceptions import NotFoundError, ValidationError
from agencyhub.core.permissions import Viewer, require_capability
from agencyhub.db.enums import RequestActivityType
from agencyhub.db.models import Project, Request, TimeEntry
from agencyhub.db.types import utcnow
from agencyhub.schemas.time_entry import TimeEntryRead
from agencyhub.services import activity_service
from agencyhub.utils.due_dates import utc_today
from agencyhub.utils.duration import format_duration, parse_duration


def resolve_minutes(duration_minutes: int | None, duration: str | None) -> int:
    """
    Pick the explicit minute count, else parse the free-text duration.

    Raises:
        ValidationError: no usable positive duration
    """
    if duration_minutes is not None:
        if duration_minutes <= 0:
            raise ValidationError("Duration must be positive")
        return duration_minutes
    minutes = parse_duration(duration)
    if minutes is None:
        raise ValidationError(f"Invalid duration: '{duration}'")
    return minutes


def create_time_entry(
    db: Session,
    viewer: Viewer,
    request: Request,
    duration_minutes: int,
    description: str | None = None,
    tracked_date: date | None = None,
) -> TimeEntry:
    """Log time; tracked_date defaults to the current UTC date."""
    require_capability(viewer, "log_time")
    if duration_minutes <= 0:
        raise ValidationError("Duration must be positive")

    entry = TimeEntry(
        request_id=request.id,
        user_id=viewer.user_id,
        duration_minutes=duration_minutes,
        description=description,
        tracked_date=tracked_date or utc_today(),
    )
    db.add(entry)
    db.flush()
    activity_service.log_activity(
        db,
        request.id,
        RequestActivityType.TIME_LOGGED,
        user_id=viewer.user_id,
        details={"time_entry_id": str(entry.id), "minutes": duration_minutes},
    )
    db.commit()
    db.refresh(entry)
    return entry


def list_time_entries(db: Session, request_id: UUID) -> list[TimeEntry]:
    return (
        db.query(TimeEntry)
        .filter(TimeEntry.request_id == request_id, TimeEntry.deleted_at.is_(None))
        .order_by(TimeEntry.tracked_date.desc(), TimeEntry.created_at.desc())
        .all()
    )


def total_minutes(db: Session, request_id: UUID) -> int:
    """Sum of live entries for a request."""
    total = (
        db.query(func.coalesce(func.sum(TimeEntry.duration_minutes), 0))
        .filter(TimeEntry.request_id == request_id, TimeEntry.deleted_at.is_(None))
        .scalar()
    )
    return int(total or 0)


def get_time_entry(db: Session, viewer: Viewer, entry_id: UUID) -> TimeEntry:
    entry = (
        db.query(TimeEntry)
        .join(Request, Request.id == TimeEntry.request_id)
        .join(Project, Project.id == Request.project_id)
        .filter(
            TimeEntry.id == entry_id,
            TimeEntry.deleted_at.is_(None),
            Project.agency_id == viewer.agency_id,
        )
        .first()
    )
    if not entry:
        raise NotFoundError("Time entry not found")
    return entry


def update_time_entry(
    db: Session,
    viewer: Viewer,
    entry: TimeEntry,
    duration_minutes: int | None = None,
    description: str | None = None,
    tracked_date: date | None = None,
) -> TimeEntry:
    require_capability(viewer, "log_time")
    if duration_minutes is not None:
        if duration_minutes <= 0:
            raise ValidationError("Duration must be positive")
        entry.duration_minutes = duration_minutes
    if description is not None:
        entry.description = description
    if tracked_date is not None:
        entry.tracked_date = tracked_date
    db.commit()
    db.refresh(entry)
    return entry


def delete_time_entry(db: Session, viewer: Viewer, entry: TimeEntry) -> None:
    require_capability(viewer, "log_time")
    entry.deleted_at = utcnow()
    db.commit()


def to_time_entry_read(entry: TimeEntry) -> TimeEntryRead:
    return TimeEntryRead(
        id=entry.id,
        request_id=entry.request_id,
        user_id=entry.user_id,
        user_name=entry.user.name if entry.user else None,
        duration_minutes=entry.duration_minutes,
        duration_display=format_duration(entry.duration_minutes),
        description=entry.description,
        tracked_date=entry.tracked_date,
        created_at=entry.created_at,
    )
