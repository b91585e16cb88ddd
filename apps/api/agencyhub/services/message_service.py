"""Message service - request threads with a public/internal partition.

Internal messages are staff-only: a client-scoped listing or lookup never
returns them. Authors may edit or delete within the edit window; staff may
moderate at any time. Deletion is soft.
"""

from datetime import datetime, timedelta
from uuid import UUID

import nh3
from sqlalchemy.orm import Session

from agencyhub.core.config import settings
from agencyhub.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from agencyhub.core.permissions import Viewer, has_capability
from agencyhub.db.enums import NotificationType, RequestActivityType
from agencyhub.db.models import Project, Request, RequestMessage
from agencyhub.db.types import utcnow
from agencyhub.schemas.message import MessageRead
from agencyhub.services import (
    activity_service,
    assignment_service,
    notification_service,
    project_service,
)

ALLOWED_TAGS = {"p", "br", "strong", "em", "u", "s", "a", "ul", "ol", "li", "code", "pre", "blockquote"}
ALLOWED_ATTRIBUTES = {"a": {"href", "target"}}


def sanitize_html(html: str) -> str:
    """Sanitize message HTML, keeping only basic rich text tags."""
    return nh3.clean(html, tags=ALLOWED_TAGS, attributes=ALLOWED_ATTRIBUTES)


def create_message(
    db: Session,
    viewer: Viewer,
    request: Request,
    content: str,
    is_internal: bool = False,
) -> RequestMessage:
    """
    Append a message to the request thread.

    Notifies the request author for public staff replies and the assignees
    for client messages.
    """
    if is_internal and not has_capability(viewer, "post_internal_messages"):
        raise PermissionDeniedError("Clients cannot post internal messages")

    clean = sanitize_html(content).strip()
    if not clean:
        raise ValidationError("Message content is required")

    now = utcnow()
    message = RequestMessage(
        request_id=request.id,
        user_id=viewer.user_id,
        content=clean,
        is_internal=is_internal,
        created_at=now,
        updated_at=now,
    )
    db.add(message)
    db.flush()

    activity_service.log_activity(
        db,
        request.id,
        RequestActivityType.MESSAGE_ADDED,
        user_id=viewer.user_id,
        details={"message_id": str(message.id), "is_internal": is_internal},
    )

    if viewer.is_client:
        recipients = [a.user_id for a in assignment_service.list_assignments(db, request.id)]
    elif not is_internal:
        recipients = [request.created_by]
    else:
        recipients = []
    notification_service.notify_users(
        db,
        agency_id=viewer.agency_id,
        user_ids=recipients,
        type=NotificationType.NEW_REPLY,
        title=f"New reply on: {request.title}",
        request_id=request.id,
        exclude_user_id=viewer.user_id,
    )
    db.commit()
    db.refresh(message)
    return message


def list_messages(db: Session, viewer: Viewer, request_id: UUID) -> list[RequestMessage]:
    """Thread in chronological order; clients never see internal rows."""
    query = db.query(RequestMessage).filter(
        RequestMessage.request_id == request_id,
        RequestMessage.deleted_at.is_(None),
    )
    if not has_capability(viewer, "view_internal_messages"):
        query = query.filter(RequestMessage.is_internal.is_(False))
    return query.order_by(RequestMessage.created_at, RequestMessage.id).all()


def get_message(db: Session, viewer: Viewer, message_id: UUID) -> RequestMessage:
    """
    Fetch a live message whose request the viewer can see.

    An internal message looked up by a client is reported as missing.
    """
    query = (
        db.query(RequestMessage)
        .join(Request, Request.id == RequestMessage.request_id)
        .join(Project, Project.id == Request.project_id)
        .filter(
            RequestMessage.id == message_id,
            RequestMessage.deleted_at.is_(None),
            Request.deleted_at.is_(None),
        )
    )
    query = project_service.scope_projects(query, viewer)
    if not has_capability(viewer, "view_internal_messages"):
        query = query.filter(RequestMessage.is_internal.is_(False))
    message = query.first()
    if not message:
        raise NotFoundError("Message not found")
    return message


def can_modify(viewer: Viewer, message: RequestMessage, now: datetime | None = None) -> bool:
    """Author within the edit window, or any staff member."""
    if has_capability(viewer, "moderate_messages"):
        return True
    if message.user_id != viewer.user_id:
        return False
    now = now or utcnow()
    window = timedelta(minutes=settings.MESSAGE_EDIT_WINDOW_MINUTES)
    return now - message.created_at < window


def update_message(
    db: Session,
    viewer: Viewer,
    message: RequestMessage,
    content: str,
    now: datetime | None = None,
) -> RequestMessage:
    if not can_modify(viewer, message, now):
        raise PermissionDeniedError("Edit window has passed")
    clean = sanitize_html(content).strip()
    if not clean:
        raise ValidationError("Message content is required")
    message.content = clean
    message.updated_at = now or utcnow()
    db.commit()
    db.refresh(message)
    return message


def delete_message(
    db: Session,
    viewer: Viewer,
    message: RequestMessage,
    now: datetime | None = None,
) -> None:
    if not can_modify(viewer, message, now):
        raise PermissionDeniedError("Edit window has passed")
    message.deleted_at = now or utcnow()
    db.commit()


def to_message_read(message: RequestMessage) -> MessageRead:
    return MessageRead(
        id=message.id,
        request_id=message.request_id,
        user_id=message.user_id,
        author_name=message.author.name if message.author else None,
        content=message.content,
        is_internal=message.is_internal,
        created_at=message.created_at,
        updated_at=message.updated_at,
        is_edited=message.updated_at > message.created_at,
    )
