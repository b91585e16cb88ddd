"""Request activity log - append-only history of request changes."""

from uuid import UUID

from sqlalchemy.orm import Session

from agencyhub.db.enums import RequestActivityType
from agencyhub.db.models import RequestActivity


def log_activity(
    db: Session,
    request_id: UUID,
    activity_type: RequestActivityType,
    user_id: UUID | None = None,
    details: dict | None = None,
) -> RequestActivity:
    """
    Append an activity entry. Does not commit.

    user_id is None for changes applied by automation rules.
    """
    entry = RequestActivity(
        request_id=request_id,
        user_id=user_id,
        activity_type=activity_type.value,
        details=details or {},
    )
    db.add(entry)
    return entry


def list_activity(
    db: Session,
    request_id: UUID,
    limit: int = 100,
) -> list[RequestActivity]:
    """Activity for a request, newest first."""
    return (
        db.query(RequestActivity)
        .filter(RequestActivity.request_id == request_id)
        .order_by(RequestActivity.created_at.desc(), RequestActivity.id)
        .limit(limit)
        .all()
    )
