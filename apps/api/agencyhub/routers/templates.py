"""Request template endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from agencyhub.core.deps import (
    get_current_session,
    get_db,
    http_error,
    require_capability,
    require_csrf_header,
)
from agencyhub.core.exceptions import AgencyHubError, NotFoundError
from agencyhub.schemas.auth import UserSession
from agencyhub.schemas.template import TemplateCreate, TemplateRead, TemplateUpdate
from agencyhub.services import template_service

router = APIRouter(prefix="/templates", tags=["templates"])


@router.get("", response_model=list[TemplateRead])
def list_templates(
    active_only: bool = False,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Clients only ever see active templates (they pick one when filing)."""
    if session.viewer.is_client:
        active_only = True
    return template_service.list_templates(db, session.agency_id, active_only)


@router.post("", response_model=TemplateRead, status_code=201, dependencies=[Depends(require_csrf_header)])
def create_template(
    data: TemplateCreate,
    session: UserSession = Depends(require_capability("manage_templates")),
    db: Session = Depends(get_db),
):
    try:
        return template_service.create_template(db, session.viewer, data.model_dump())
    except AgencyHubError as e:
        raise http_error(e)


@router.get("/{template_id}", response_model=TemplateRead)
def get_template(
    template_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    try:
        template = template_service.get_template(db, session.agency_id, template_id)
    except AgencyHubError as e:
        raise http_error(e)
    if session.viewer.is_client and not template.is_active:
        raise http_error(NotFoundError("Template not found"))
    return template


@router.patch("/{template_id}", response_model=TemplateRead, dependencies=[Depends(require_csrf_header)])
def update_template(
    template_id: UUID,
    data: TemplateUpdate,
    session: UserSession = Depends(require_capability("manage_templates")),
    db: Session = Depends(get_db),
):
    try:
        return template_service.update_template(
            db, session.viewer, template_id, data.model_dump(exclude_unset=True)
        )
    except AgencyHubError as e:
        raise http_error(e)


@router.delete("/{template_id}", status_code=204, dependencies=[Depends(require_csrf_header)])
def delete_template(
    template_id: UUID,
    session: UserSession = Depends(require_capability("manage_templates")),
    db: Session = Depends(get_db),
):
    try:
        template_service.delete_template(db, session.viewer, template_id)
    except AgencyHubError as e:
        raise http_error(e)
