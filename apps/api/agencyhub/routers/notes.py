"""Project note endpoints (staff only).

Mixed paths: /projects/{id}/notes and /notes/{id}.
"""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from agencyhub.core.deps import get_current_session, get_db, http_error, require_csrf_header
from agencyhub.core.exceptions import AgencyHubError
from agencyhub.schemas.auth import UserSession
from agencyhub.schemas.note import NoteCreate, NoteRead, NoteUpdate
from agencyhub.services import note_service, project_service

router = APIRouter()


@router.get("/projects/{project_id}/notes", response_model=list[NoteRead])
def list_notes(
    project_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Pinned notes first, then most recently updated."""
    try:
        project = project_service.get_project(db, session.viewer, project_id)
        notes = note_service.list_notes(db, session.viewer, project.id)
    except AgencyHubError as e:
        raise http_error(e)
    return [note_service.to_note_read(n) for n in notes]


@router.post(
    "/projects/{project_id}/notes",
    response_model=NoteRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_note(
    project_id: UUID,
    data: NoteCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    try:
        project = project_service.get_project(db, session.viewer, project_id)
        note = note_service.create_note(db, session.viewer, project, data.content, data.title)
    except AgencyHubError as e:
        raise http_error(e)
    return note_service.to_note_read(note)


@router.patch("/notes/{note_id}", response_model=NoteRead, dependencies=[Depends(require_csrf_header)])
def update_note(
    note_id: UUID,
    data: NoteUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Any staff member may pin; text edits need the author or an owner."""
    try:
        note = note_service.get_note(db, session.viewer, note_id)
        note = note_service.update_note(
            db, session.viewer, note, data.model_dump(exclude_unset=True)
        )
    except AgencyHubError as e:
        raise http_error(e)
    return note_service.to_note_read(note)


@router.delete("/notes/{note_id}", status_code=204, dependencies=[Depends(require_csrf_header)])
def delete_note(
    note_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    try:
        note = note_service.get_note(db, session.viewer, note_id)
        note_service.delete_note(db, session.viewer, note)
    except AgencyHubError as e:
        raise http_error(e)
