"""
Notification Service - handles in-app notifications.

Provides CRUD for notifications and the trigger helpers used by request,
assignment, message, invitation and automation events.
"""

from typing import Iterable
from uuid import UUID

from sqlalchemy.orm import Session

from agencyhub.db.enums import NotificationType
from agencyhub.db.models import AgencyMember, Notification
from agencyhub.db.types import utcnow


# =============================================================================
# CRUD
# =============================================================================


def create_notification(
    db: Session,
    agency_id: UUID,
    user_id: UUID,
    type: NotificationType,
    title: str,
    body: str | None = None,
    request_id: UUID | None = None,
) -> Notification:
    """Queue a notification row. Does not commit."""
    notification = Notification(
        agency_id=agency_id,
        user_id=user_id,
        type=type.value,
        title=title,
        body=body,
        request_id=request_id,
    )
    db.add(notification)
    return notification


def notify_users(
    db: Session,
    agency_id: UUID,
    user_ids: Iterable[UUID],
    type: NotificationType,
    title: str,
    body: str | None = None,
    request_id: UUID | None = None,
    exclude_user_id: UUID | None = None,
) -> list[Notification]:
    """Notify each distinct user once, skipping the actor."""
    created = []
    seen: set[UUID] = set()
    for user_id in user_ids:
        if user_id is None or user_id == exclude_user_id or user_id in seen:
            continue
        seen.add(user_id)
        created.append(
            create_notification(db, agency_id, user_id, type, title, body, request_id)
        )
    return created


def get_staff_user_ids(db: Session, agency_id: UUID) -> list[UUID]:
    """Joined staff and owners of an agency."""
    rows = (
        db.query(AgencyMember.user_id)
        .filter(
            AgencyMember.agency_id == agency_id,
            AgencyMember.user_id.isnot(None),
        )
        .all()
    )
    return [r[0] for r in rows]


def list_notifications(
    db: Session,
    user_id: UUID,
    agency_id: UUID,
    unread_only: bool = False,
    limit: int = 50,
    offset: int = 0,
) -> list[Notification]:
    """List notifications for a user, newest first."""
    query = db.query(Notification).filter(
        Notification.user_id == user_id,
        Notification.agency_id == agency_id,
    )
    if unread_only:
        query = query.filter(Notification.read_at.is_(None))
    return (
        query.order_by(Notification.created_at.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def count_unread(db: Session, user_id: UUID, agency_id: UUID) -> int:
    return (
        db.query(Notification)
        .filter(
            Notification.user_id == user_id,
            Notification.agency_id == agency_id,
            Notification.read_at.is_(None),
        )
        .count()
    )


def mark_read(db: Session, notification_id: UUID, user_id: UUID) -> Notification | None:
    """Mark one notification read. Returns None if it isn't the user's."""
    notification = (
        db.query(Notification)
        .filter(Notification.id == notification_id, Notification.user_id == user_id)
        .first()
    )
    if not notification:
        return None
    if notification.read_at is None:
        notification.read_at = utcnow()
        db.commit()
        db.refresh(notification)
    return notification


def mark_all_read(db: Session, user_id: UUID, agency_id: UUID) -> int:
    """Mark all unread notifications read. Returns count updated."""
    count = (
        db.query(Notification)
        .filter(
            Notification.user_id == user_id,
            Notification.agency_id == agency_id,
            Notification.read_at.is_(None),
        )
        .update({Notification.read_at: utcnow()}, synchronize_session=False)
    )
    db.commit()
    return count
