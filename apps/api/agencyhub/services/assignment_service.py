"""Assignment service - staff assigned to requests.

At most one assignment row exists per (request, user); assigning an
already-assigned user returns the existing row unchanged.
"""

import logging
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from agencyhub.core.exceptions import NotFoundError, ValidationError
from agencyhub.core.permissions import Viewer, require_capability
from agencyhub.db.enums import AutomationTrigger, NotificationType, RequestActivityType
from agencyhub.db.models import Request, RequestAssignment
from agencyhub.services import activity_service, agency_service, notification_service

logger = logging.getLogger(__name__)


def get_assignment(db: Session, request_id: UUID, user_id: UUID) -> RequestAssignment | None:
    return (
        db.query(RequestAssignment)
        .filter(
            RequestAssignment.request_id == request_id,
            RequestAssignment.user_id == user_id,
        )
        .first()
    )


def list_assignments(db: Session, request_id: UUID) -> list[RequestAssignment]:
    return (
        db.query(RequestAssignment)
        .filter(RequestAssignment.request_id == request_id)
        .order_by(RequestAssignment.assigned_at, RequestAssignment.id)
        .all()
    )


def add_assignment(
    db: Session,
    request: Request,
    user_id: UUID,
    assigned_by: UUID | None,
) -> tuple[RequestAssignment, bool]:
    """
    Insert an assignment unless one exists. Commits.

    Returns (assignment, created).

    Raises:
        ValidationError: user is not staff of the request's agency
    """
    agency_id = request.project.agency_id
    if not agency_service.is_staff_member(db, agency_id, user_id):
        raise ValidationError("Only agency staff can be assigned")

    existing = get_assignment(db, request.id, user_id)
    if existing:
        return existing, False

    assignment = RequestAssignment(
        request_id=request.id,
        user_id=user_id,
        assigned_by=assigned_by,
    )
    db.add(assignment)
    try:
        db.flush()
    except IntegrityError:
        # Concurrent assign of the same user won the unique constraint
        db.rollback()
        existing = get_assignment(db, request.id, user_id)
        if existing:
            return existing, False
        raise

    activity_service.log_activity(
        db,
        request.id,
        RequestActivityType.ASSIGNED,
        user_id=assigned_by,
        details={"user_id": str(user_id)},
    )
    notification_service.notify_users(
        db,
        agency_id=agency_id,
        user_ids=[user_id],
        type=NotificationType.ASSIGNMENT,
        title=f"You were assigned: {request.title}",
        request_id=request.id,
        exclude_user_id=assigned_by,
    )
    db.commit()
    db.refresh(assignment)
    return assignment, True


def assign(
    db: Session,
    viewer: Viewer,
    request: Request,
    user_id: UUID,
) -> RequestAssignment:
    """Assign a staff member and fire request_assigned for new assignments."""
    require_capability(viewer, "assign_request")
    assignment, created = add_assignment(db, request, user_id, viewer.user_id)
    if created:
        from agencyhub.services import automation_engine

        automation_engine.trigger(
            db,
            AutomationTrigger.REQUEST_ASSIGNED,
            request,
            {"user_id": str(user_id)},
        )
    return assignment


def unassign(db: Session, viewer: Viewer, request: Request, user_id: UUID) -> None:
    """Remove an assignment (hard delete, history kept in the activity log)."""
    require_capability(viewer, "assign_request")
    assignment = get_assignment(db, request.id, user_id)
    if not assignment:
        raise NotFoundError("Assignment not found")

    db.delete(assignment)
    activity_service.log_activity(
        db,
        request.id,
        RequestActivityType.UNASSIGNED,
        user_id=viewer.user_id,
        details={"user_id": str(user_id)},
    )
    db.commit()
