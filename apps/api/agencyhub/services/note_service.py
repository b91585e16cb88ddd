"""Note service - staff-only notes on projects.

Any staff member may pin or unpin a note. Title and content changes and
deletion are limited to the author and agency owners. Deletion is soft.
"""

from uuid import UUID

import nh3
from sqlalchemy.orm import Session, joinedload

from agencyhub.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from agencyhub.core.permissions import Viewer, require_capability
from agencyhub.db.models import Project, ProjectNote
from agencyhub.db.types import utcnow
from agencyhub.schemas.note import NoteRead

# Allowed HTML tags for rich text notes
ALLOWED_TAGS = {"p", "br", "strong", "em", "u", "s", "ul", "ol", "li", "a", "blockquote", "h1", "h2", "h3", "code", "pre"}
ALLOWED_ATTRIBUTES = {"a": {"href", "target"}}


def sanitize_html(html: str) -> str:
    """Sanitize HTML to prevent XSS, allowing only safe rich text tags."""
    return nh3.clean(html, tags=ALLOWED_TAGS, attributes=ALLOWED_ATTRIBUTES)


def _clean_title(title: str | None) -> str | None:
    if title is None:
        return None
    return title.strip() or None


def create_note(
    db: Session,
    viewer: Viewer,
    project: Project,
    content: str,
    title: str | None = None,
) -> ProjectNote:
    require_capability(viewer, "manage_notes")
    clean = sanitize_html(content).strip()
    if not clean:
        raise ValidationError("Note content is required")

    note = ProjectNote(
        project_id=project.id,
        user_id=viewer.user_id,
        title=_clean_title(title),
        content=clean,
    )
    db.add(note)
    db.commit()
    db.refresh(note)
    return note


def list_notes(db: Session, viewer: Viewer, project_id: UUID) -> list[ProjectNote]:
    """Live notes, pinned first, then most recently updated."""
    require_capability(viewer, "manage_notes")
    return (
        db.query(ProjectNote)
        .options(joinedload(ProjectNote.author))
        .filter(
            ProjectNote.project_id == project_id,
            ProjectNote.deleted_at.is_(None),
        )
        .order_by(ProjectNote.is_pinned.desc(), ProjectNote.updated_at.desc(), ProjectNote.id)
        .all()
    )


def get_note(db: Session, viewer: Viewer, note_id: UUID) -> ProjectNote:
    """Fetch a live note on a live project of the viewer's agency."""
    require_capability(viewer, "manage_notes")
    note = (
        db.query(ProjectNote)
        .join(Project, Project.id == ProjectNote.project_id)
        .filter(
            ProjectNote.id == note_id,
            ProjectNote.deleted_at.is_(None),
            Project.agency_id == viewer.agency_id,
            Project.deleted_at.is_(None),
        )
        .first()
    )
    if not note:
        raise NotFoundError("Note not found")
    return note


def can_edit(viewer: Viewer, note: ProjectNote) -> bool:
    """Author or agency owner."""
    return note.user_id == viewer.user_id or viewer.is_owner


def update_note(db: Session, viewer: Viewer, note: ProjectNote, changes: dict) -> ProjectNote:
    """
    Partial update.

    Raises:
        PermissionDeniedError: title or content change by someone other than
            the author or an owner
    """
    require_capability(viewer, "manage_notes")
    edits_text = "title" in changes or changes.get("content") is not None
    if edits_text and not can_edit(viewer, note):
        raise PermissionDeniedError("Only the author can edit this note")

    if "title" in changes:
        note.title = _clean_title(changes["title"])
    if changes.get("content") is not None:
        clean = sanitize_html(changes["content"]).strip()
        if not clean:
            raise ValidationError("Note content is required")
        note.content = clean
    if changes.get("is_pinned") is not None:
        note.is_pinned = changes["is_pinned"]

    note.updated_at = utcnow()
    db.commit()
    db.refresh(note)
    return note


def delete_note(db: Session, viewer: Viewer, note: ProjectNote) -> None:
    require_capability(viewer, "manage_notes")
    if not can_edit(viewer, note):
        raise PermissionDeniedError("Not authorized to delete this note")
    note.deleted_at = utcnow()
    db.commit()


def to_note_read(note: ProjectNote) -> NoteRead:
    return NoteRead(
        id=note.id,
        project_id=note.project_id,
        user_id=note.user_id,
        author_name=note.author.name if note.author else None,
        title=note.title,
        content=note.content,
        is_pinned=note.is_pinned,
        created_at=note.created_at,
        updated_at=note.updated_at,
    )
