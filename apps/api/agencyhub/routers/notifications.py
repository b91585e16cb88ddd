"""In-app notification endpoints for the signed-in user."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from agencyhub.core.deps import get_current_session, get_db, require_csrf_header
from agencyhub.schemas.auth import UserSession
from agencyhub.schemas.notification import NotificationRead, NotificationsResponse
from agencyhub.services import notification_service

router = APIRouter()


@router.get("/notifications", response_model=NotificationsResponse)
def list_notifications(
    unread_only: bool = False,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    items = notification_service.list_notifications(
        db, session.user_id, session.agency_id, unread_only, limit, offset
    )
    return NotificationsResponse(
        items=items,
        unread_count=notification_service.count_unread(db, session.user_id, session.agency_id),
    )


@router.patch(
    "/notifications/{notification_id}/read",
    response_model=NotificationRead,
    dependencies=[Depends(require_csrf_header)],
)
def mark_read(
    notification_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    notification = notification_service.mark_read(db, notification_id, session.user_id)
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")
    return notification


@router.post("/notifications/read-all", dependencies=[Depends(require_csrf_header)])
def mark_all_read(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    count = notification_service.mark_all_read(db, session.user_id, session.agency_id)
    return {"marked_read": count}
