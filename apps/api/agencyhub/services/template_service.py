"""Request template service.

Templates only pre-fill request creation; a created request keeps no link
back to the template it came from.
"""

from uuid import UUID

from sqlalchemy.orm import Session

from agencyhub.core.exceptions import NotFoundError
from agencyhub.core.permissions import Viewer, require_capability
from agencyhub.db.models import RequestTemplate
from agencyhub.db.types import utcnow

UPDATABLE_FIELDS = (
    "name",
    "description",
    "default_type",
    "default_priority",
    "title_template",
    "description_template",
    "is_active",
    "sort_order",
)


def list_templates(
    db: Session,
    agency_id: UUID,
    active_only: bool = False,
) -> list[RequestTemplate]:
    query = db.query(RequestTemplate).filter(
        RequestTemplate.agency_id == agency_id,
        RequestTemplate.deleted_at.is_(None),
    )
    if active_only:
        query = query.filter(RequestTemplate.is_active.is_(True))
    return query.order_by(RequestTemplate.sort_order, RequestTemplate.name).all()


def get_template(db: Session, agency_id: UUID, template_id: UUID) -> RequestTemplate:
    template = (
        db.query(RequestTemplate)
        .filter(
            RequestTemplate.id == template_id,
            RequestTemplate.agency_id == agency_id,
            RequestTemplate.deleted_at.is_(None),
        )
        .first()
    )
    if not template:
        raise NotFoundError("Template not found")
    return template


def create_template(db: Session, viewer: Viewer, data: dict) -> RequestTemplate:
    require_capability(viewer, "manage_templates")
    values = {k: v for k, v in data.items() if k in UPDATABLE_FIELDS}
    for key in ("default_type", "default_priority"):
        if key in values and hasattr(values[key], "value"):
            values[key] = values[key].value
    template = RequestTemplate(
        agency_id=viewer.agency_id,
        created_by=viewer.user_id,
        **values,
    )
    db.add(template)
    db.commit()
    db.refresh(template)
    return template


def update_template(
    db: Session,
    viewer: Viewer,
    template_id: UUID,
    changes: dict,
) -> RequestTemplate:
    """Partial update; last write wins."""
    require_capability(viewer, "manage_templates")
    template = get_template(db, viewer.agency_id, template_id)
    for field, value in changes.items():
        if field not in UPDATABLE_FIELDS:
            continue
        if hasattr(value, "value"):
            value = value.value
        setattr(template, field, value)
    db.commit()
    db.refresh(template)
    return template


def delete_template(db: Session, viewer: Viewer, template_id: UUID) -> None:
    require_capability(viewer, "manage_templates")
    template = get_template(db, viewer.agency_id, template_id)
    template.deleted_at = utcnow()
    db.commit()
