"""Agency tag catalog endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from agencyhub.core.deps import get_db, http_error, require_capability, require_csrf_header
from agencyhub.core.exceptions import AgencyHubError
from agencyhub.schemas.auth import UserSession
from agencyhub.schemas.tag import TagCreate, TagRead, TagUpdate
from agencyhub.services import tag_service

router = APIRouter(prefix="/tags", tags=["tags"])


@router.get("", response_model=list[TagRead])
def list_tags(
    session: UserSession = Depends(require_capability("manage_tags")),
    db: Session = Depends(get_db),
):
    return [tag_service.to_tag_read(t) for t in tag_service.list_tags(db, session.agency_id)]


@router.post("", response_model=TagRead, status_code=201, dependencies=[Depends(require_csrf_header)])
def create_tag(
    data: TagCreate,
    session: UserSession = Depends(require_capability("manage_tags")),
    db: Session = Depends(get_db),
):
    """Names are unique per agency, compared case-insensitively."""
    try:
        tag = tag_service.create_tag(db, session.viewer, data.name, data.color)
    except AgencyHubError as e:
        raise http_error(e)
    return tag_service.to_tag_read(tag)


@router.patch("/{tag_id}", response_model=TagRead, dependencies=[Depends(require_csrf_header)])
def update_tag(
    tag_id: UUID,
    data: TagUpdate,
    session: UserSession = Depends(require_capability("manage_tags")),
    db: Session = Depends(get_db),
):
    try:
        tag = tag_service.update_tag(db, session.viewer, tag_id, data.name, data.color)
    except AgencyHubError as e:
        raise http_error(e)
    return tag_service.to_tag_read(tag)


@router.delete("/{tag_id}", status_code=204, dependencies=[Depends(require_csrf_header)])
def delete_tag(
    tag_id: UUID,
    session: UserSession = Depends(require_capability("manage_tags")),
    db: Session = Depends(get_db),
):
    try:
        tag_service.delete_tag(db, session.viewer, tag_id)
    except AgencyHubError as e:
        raise http_error(e)
