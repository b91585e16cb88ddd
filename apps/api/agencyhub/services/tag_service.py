"""Tag service - agency tag catalog and request tagging."""

from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from agencyhub.core.exceptions import NotFoundError, ValidationError
from agencyhub.core.permissions import Viewer, require_capability
from agencyhub.db.enums import RequestActivityType, TagColor
from agencyhub.db.models import Request, RequestTag, Tag
from agencyhub.schemas.tag import TagRead, TagStyle
from agencyhub.services import activity_service

# (background, text, border) per palette color
TAG_COLOR_STYLES: dict[str, tuple[str, str, str]] = {
    TagColor.GRAY.value: ("bg-gray-100", "text-gray-800", "border-gray-200"),
    TagColor.RED.value: ("bg-red-100", "text-red-800", "border-red-200"),
    TagColor.ORANGE.value: ("bg-orange-100", "text-orange-800", "border-orange-200"),
    TagColor.YELLOW.value: ("bg-yellow-100", "text-yellow-800", "border-yellow-200"),
    TagColor.GREEN.value: ("bg-green-100", "text-green-800", "border-green-200"),
    TagColor.BLUE.value: ("bg-blue-100", "text-blue-800", "border-blue-200"),
    TagColor.PURPLE.value: ("bg-purple-100", "text-purple-800", "border-purple-200"),
    TagColor.PINK.value: ("bg-pink-100", "text-pink-800", "border-pink-200"),
}


def tag_color_style(color: str | None) -> tuple[str, str, str]:
    """Style triple for a color; unknown colors fall back to gray."""
    return TAG_COLOR_STYLES.get(color or "", TAG_COLOR_STYLES[TagColor.GRAY.value])


def to_tag_read(tag: Tag) -> TagRead:
    background, text, border = tag_color_style(tag.color)
    return TagRead(
        id=tag.id,
        name=tag.name,
        color=tag.color,
        style=TagStyle(background=background, text=text, border=border),
    )


# =============================================================================
# Catalog
# =============================================================================

def list_tags(db: Session, agency_id: UUID) -> list[Tag]:
    return db.query(Tag).filter(Tag.agency_id == agency_id).order_by(Tag.name).all()


def get_tag(db: Session, agency_id: UUID, tag_id: UUID) -> Tag:
    tag = db.query(Tag).filter(Tag.id == tag_id, Tag.agency_id == agency_id).first()
    if not tag:
        raise NotFoundError("Tag not found")
    return tag


def _ensure_unique_name(
    db: Session,
    agency_id: UUID,
    name: str,
    exclude_id: UUID | None = None,
) -> None:
    query = db.query(Tag.id).filter(
        Tag.agency_id == agency_id,
        func.lower(Tag.name) == name.lower(),
    )
    if exclude_id:
        query = query.filter(Tag.id != exclude_id)
    if query.first():
        raise ValidationError(f"Tag '{name}' already exists")


def create_tag(db: Session, viewer: Viewer, name: str, color: TagColor = TagColor.GRAY) -> Tag:
    require_capability(viewer, "manage_tags")
    name = name.strip()
    if not name:
        raise ValidationError("Tag name is required")
    _ensure_unique_name(db, viewer.agency_id, name)

    tag = Tag(agency_id=viewer.agency_id, name=name, color=TagColor(color).value)
    db.add(tag)
    db.commit()
    db.refresh(tag)
    return tag


def update_tag(
    db: Session,
    viewer: Viewer,
    tag_id: UUID,
    name: str | None = None,
    color: TagColor | None = None,
) -> Tag:
    require_capability(viewer, "manage_tags")
    tag = get_tag(db, viewer.agency_id, tag_id)
    if name is not None:
        name = name.strip()
        if not name:
            raise ValidationError("Tag name is required")
        _ensure_unique_name(db, viewer.agency_id, name, exclude_id=tag.id)
        tag.name = name
    if color is not None:
        tag.color = TagColor(color).value
    db.commit()
    db.refresh(tag)
    return tag


def delete_tag(db: Session, viewer: Viewer, tag_id: UUID) -> None:
    """Hard delete; join rows cascade."""
    require_capability(viewer, "manage_tags")
    tag = get_tag(db, viewer.agency_id, tag_id)
    db.query(RequestTag).filter(RequestTag.tag_id == tag.id).delete(synchronize_session=False)
    db.delete(tag)
    db.commit()


# =============================================================================
# Request tagging (callers commit)
# =============================================================================

def _request_tag_ids(db: Session, request_id: UUID) -> set[UUID]:
    rows = db.query(RequestTag.tag_id).filter(RequestTag.request_id == request_id).all()
    return {r[0] for r in rows}


def add_tag(db: Session, request: Request, tag_id: UUID, actor_id: UUID | None) -> bool:
    """Attach a tag. Idempotent: returns False if already present."""
    tag = get_tag(db, request.project.agency_id, tag_id)
    if tag.id in _request_tag_ids(db, request.id):
        return False
    db.add(RequestTag(request_id=request.id, tag_id=tag.id))
    activity_service.log_activity(
        db,
        request.id,
        RequestActivityType.TAG_ADDED,
        user_id=actor_id,
        details={"tag_id": str(tag.id), "tag_name": tag.name},
    )
    return True


def remove_tag(db: Session, request: Request, tag_id: UUID, actor_id: UUID | None) -> bool:
    """Detach a tag. Idempotent: returns False if not present."""
    deleted = (
        db.query(RequestTag)
        .filter(RequestTag.request_id == request.id, RequestTag.tag_id == tag_id)
        .delete(synchronize_session=False)
    )
    if not deleted:
        return False
    activity_service.log_activity(
        db,
        request.id,
        RequestActivityType.TAG_REMOVED,
        user_id=actor_id,
        details={"tag_id": str(tag_id)},
    )
    return True


def set_request_tags(
    db: Session,
    viewer: Viewer,
    request: Request,
    tag_ids: list[UUID],
) -> list[Tag]:
    """Replace the request's tag set with exactly tag_ids."""
    require_capability(viewer, "manage_tags")
    wanted = set(tag_ids)
    for tag_id in wanted:
        get_tag(db, viewer.agency_id, tag_id)  # Agency check before any change

    current = _request_tag_ids(db, request.id)
    for tag_id in current - wanted:
        remove_tag(db, request, tag_id, viewer.user_id)
    for tag_id in wanted - current:
        add_tag(db, request, tag_id, viewer.user_id)
    db.commit()
    db.refresh(request)
    return list(request.tags)
