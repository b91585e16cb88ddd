"""Request message thread endpoints.

Mixed paths: /requests/{id}/messages and /messages/{id}.
"""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from agencyhub.core.deps import get_current_session, get_db, http_error, require_csrf_header
from agencyhub.core.exceptions import AgencyHubError
from agencyhub.schemas.auth import UserSession
from agencyhub.schemas.message import MessageCreate, MessageRead, MessageUpdate
from agencyhub.services import message_service, request_service

router = APIRouter()


@router.get("/requests/{request_id}/messages", response_model=list[MessageRead])
def list_messages(
    request_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Thread in chronological order. Internal notes are omitted for clients."""
    try:
        request = request_service.get_request(db, session.viewer, request_id)
    except AgencyHubError as e:
        raise http_error(e)
    return [
        message_service.to_message_read(m)
        for m in message_service.list_messages(db, session.viewer, request.id)
    ]


@router.post(
    "/requests/{request_id}/messages",
    response_model=MessageRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_message(
    request_id: UUID,
    data: MessageCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    try:
        request = request_service.get_request(db, session.viewer, request_id)
        message = message_service.create_message(
            db, session.viewer, request, data.content, data.is_internal
        )
    except AgencyHubError as e:
        raise http_error(e)
    return message_service.to_message_read(message)


@router.patch("/messages/{message_id}", response_model=MessageRead, dependencies=[Depends(require_csrf_header)])
def update_message(
    message_id: UUID,
    data: MessageUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Authors may edit within the edit window; staff may edit any message."""
    try:
        message = message_service.get_message(db, session.viewer, message_id)
        message = message_service.update_message(db, session.viewer, message, data.content)
    except AgencyHubError as e:
        raise http_error(e)
    return message_service.to_message_read(message)


@router.delete("/messages/{message_id}", status_code=204, dependencies=[Depends(require_csrf_header)])
def delete_message(
    message_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    try:
        message = message_service.get_message(db, session.viewer, message_id)
        message_service.delete_message(db, session.viewer, message)
    except AgencyHubError as e:
        raise http_error(e)
