"""Request endpoints: detail, update, assignment, tagging, rating, history."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from agencyhub.core.deps import (
    get_current_session,
    get_db,
    http_error,
    require_capability,
    require_csrf_header,
)
from agencyhub.core.exceptions import AgencyHubError
from agencyhub.schemas.auth import UserSession
from agencyhub.schemas.rating import RatingRead, RatingSubmit
from agencyhub.schemas.request import (
    ActivityRead,
    AssigneeRead,
    AssignmentCreate,
    RequestRead,
    RequestUpdate,
)
from agencyhub.schemas.tag import RequestTagsSet, TagRead
from agencyhub.services import (
    activity_service,
    assignment_service,
    rating_service,
    request_service,
    tag_service,
)

router = APIRouter()


def _get_request(db: Session, session: UserSession, request_id: UUID):
    try:
        return request_service.get_request(db, session.viewer, request_id)
    except AgencyHubError as e:
        raise http_error(e)


# =============================================================================
# Request CRUD
# =============================================================================

@router.get("/{request_id}", response_model=RequestRead)
def get_request(
    request_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    request = _get_request(db, session, request_id)
    return request_service.to_request_read(request)


@router.patch("/{request_id}", response_model=RequestRead, dependencies=[Depends(require_csrf_header)])
def update_request(
    request_id: UUID,
    data: RequestUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Partial update. Concurrent edits resolve last-write-wins."""
    request = _get_request(db, session, request_id)
    try:
        request = request_service.update_request(
            db, session.viewer, request, data.model_dump(exclude_unset=True)
        )
    except AgencyHubError as e:
        raise http_error(e)
    return request_service.to_request_read(request)


@router.delete("/{request_id}", status_code=204, dependencies=[Depends(require_csrf_header)])
def delete_request(
    request_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    request = _get_request(db, session, request_id)
    try:
        request_service.delete_request(db, session.viewer, request)
    except AgencyHubError as e:
        raise http_error(e)


# =============================================================================
# Assignments
# =============================================================================

@router.get("/{request_id}/assignments", response_model=list[AssigneeRead])
def list_assignments(
    request_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    request = _get_request(db, session, request_id)
    return [
        AssigneeRead(user_id=a.user_id, name=a.user.name, assigned_at=a.assigned_at)
        for a in assignment_service.list_assignments(db, request.id)
    ]


@router.post(
    "/{request_id}/assignments",
    response_model=AssigneeRead,
    dependencies=[Depends(require_csrf_header)],
)
def assign(
    request_id: UUID,
    data: AssignmentCreate,
    session: UserSession = Depends(require_capability("assign_request")),
    db: Session = Depends(get_db),
):
    """Assign a staff member. Assigning an already-assigned user is a no-op."""
    request = _get_request(db, session, request_id)
    try:
        assignment = assignment_service.assign(db, session.viewer, request, data.user_id)
    except AgencyHubError as e:
        raise http_error(e)
    return AssigneeRead(
        user_id=assignment.user_id,
        name=assignment.user.name,
        assigned_at=assignment.assigned_at,
    )


@router.delete(
    "/{request_id}/assignments/{user_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def unassign(
    request_id: UUID,
    user_id: UUID,
    session: UserSession = Depends(require_capability("assign_request")),
    db: Session = Depends(get_db),
):
    request = _get_request(db, session, request_id)
    try:
        assignment_service.unassign(db, session.viewer, request, user_id)
    except AgencyHubError as e:
        raise http_error(e)


# =============================================================================
# Tags
# =============================================================================

@router.get("/{request_id}/tags", response_model=list[TagRead])
def list_request_tags(
    request_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    request = _get_request(db, session, request_id)
    return [tag_service.to_tag_read(t) for t in request.tags]


@router.put("/{request_id}/tags", response_model=list[TagRead], dependencies=[Depends(require_csrf_header)])
def set_request_tags(
    request_id: UUID,
    data: RequestTagsSet,
    session: UserSession = Depends(require_capability("manage_tags")),
    db: Session = Depends(get_db),
):
    """Replace the request's tags with exactly the given set."""
    request = _get_request(db, session, request_id)
    try:
        tags = tag_service.set_request_tags(db, session.viewer, request, data.tag_ids)
    except AgencyHubError as e:
        raise http_error(e)
    return [tag_service.to_tag_read(t) for t in tags]


@router.post(
    "/{request_id}/tags/{tag_id}",
    response_model=list[TagRead],
    dependencies=[Depends(require_csrf_header)],
)
def add_request_tag(
    request_id: UUID,
    tag_id: UUID,
    session: UserSession = Depends(require_capability("manage_tags")),
    db: Session = Depends(get_db),
):
    request = _get_request(db, session, request_id)
    try:
        tag_service.add_tag(db, request, tag_id, session.user_id)
    except AgencyHubError as e:
        raise http_error(e)
    db.commit()
    db.refresh(request)
    return [tag_service.to_tag_read(t) for t in request.tags]


@router.delete(
    "/{request_id}/tags/{tag_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def remove_request_tag(
    request_id: UUID,
    tag_id: UUID,
    session: UserSession = Depends(require_capability("manage_tags")),
    db: Session = Depends(get_db),
):
    request = _get_request(db, session, request_id)
    tag_service.remove_tag(db, request, tag_id, session.user_id)
    db.commit()


# =============================================================================
# Rating
# =============================================================================

@router.get("/{request_id}/rating", response_model=RatingRead)
def get_rating(
    request_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    request = _get_request(db, session, request_id)
    rating = rating_service.get_rating(db, request.id)
    if not rating:
        raise HTTPException(status_code=404, detail="Request has not been rated")
    return rating


@router.put("/{request_id}/rating", response_model=RatingRead, dependencies=[Depends(require_csrf_header)])
def submit_rating(
    request_id: UUID,
    data: RatingSubmit,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Rate a completed request (client author only). Re-submitting updates the rating."""
    request = _get_request(db, session, request_id)
    try:
        return rating_service.submit_rating(
            db, session.viewer, request, data.rating, data.feedback
        )
    except AgencyHubError as e:
        raise http_error(e)


# =============================================================================
# Activity
# =============================================================================

@router.get("/{request_id}/activity", response_model=list[ActivityRead])
def list_activity(
    request_id: UUID,
    limit: int = Query(100, ge=1, le=500),
    session: UserSession = Depends(require_capability("view_activity")),
    db: Session = Depends(get_db),
):
    request = _get_request(db, session, request_id)
    return activity_service.list_activity(db, request.id, limit)
