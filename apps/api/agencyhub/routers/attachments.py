"""Attachment endpoints and local-backend file downloads."""

import mimetypes
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, Response, UploadFile
from sqlalchemy.orm import Session

from agencyhub.core.deps import get_current_session, get_db, http_error, require_csrf_header
from agencyhub.core.exceptions import AgencyHubError
from agencyhub.db.enums import StorageBucket
from agencyhub.db.models import Attachment
from agencyhub.schemas.attachment import AttachmentRead
from agencyhub.schemas.auth import UserSession
from agencyhub.services import message_service, request_service, storage_service

router = APIRouter()


def _to_read(attachment: Attachment) -> AttachmentRead:
    read = AttachmentRead.model_validate(attachment)
    read.download_url = storage_service.file_url(StorageBucket.ATTACHMENTS, attachment.storage_key)
    return read


@router.get("/requests/{request_id}/attachments", response_model=list[AttachmentRead])
def list_attachments(
    request_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    try:
        request = request_service.get_request(db, session.viewer, request_id)
    except AgencyHubError as e:
        raise http_error(e)
    return [_to_read(a) for a in storage_service.list_attachments(db, session.viewer, request.id)]


@router.post(
    "/requests/{request_id}/attachments",
    response_model=list[AttachmentRead],
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
async def upload_attachments(
    request_id: UUID,
    files: list[UploadFile] = File(...),
    message_id: UUID | None = Form(None),
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Upload up to 10 files, optionally linked to a message of the request."""
    uploads = [
        storage_service.UploadFile(
            filename=f.filename or "file",
            content_type=f.content_type or "",
            data=await f.read(),
        )
        for f in files
    ]
    try:
        request = request_service.get_request(db, session.viewer, request_id)
        message = None
        if message_id:
            message = message_service.get_message(db, session.viewer, message_id)
        created = storage_service.upload_attachments(
            db, session.viewer, request, uploads, message
        )
    except AgencyHubError as e:
        raise http_error(e)
    return [_to_read(a) for a in created]


@router.delete("/attachments/{attachment_id}", status_code=204, dependencies=[Depends(require_csrf_header)])
def delete_attachment(
    attachment_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    try:
        attachment = storage_service.get_attachment(db, session.viewer, attachment_id)
        if attachment.request_id:
            request_service.get_request(db, session.viewer, attachment.request_id)
        storage_service.delete_attachment(db, session.viewer, attachment)
    except AgencyHubError as e:
        raise http_error(e)


@router.get("/attachments/{attachment_id}/download")
def download_attachment(
    attachment_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    try:
        attachment = storage_service.get_attachment(db, session.viewer, attachment_id)
        if attachment.request_id:
            request_service.get_request(db, session.viewer, attachment.request_id)
        data = storage_service.read_file(StorageBucket.ATTACHMENTS, attachment.storage_key)
    except AgencyHubError as e:
        raise http_error(e)
    return Response(
        content=data,
        media_type=attachment.content_type,
        headers={"Content-Disposition": f'attachment; filename="{attachment.filename}"'},
    )


@router.get("/files/{bucket}/{key:path}")
def serve_file(
    bucket: StorageBucket,
    key: str,
    session: UserSession = Depends(get_current_session),
):
    """Serve a stored file from the local backend. Attachments are agency-scoped."""
    if bucket == StorageBucket.ATTACHMENTS and not key.startswith(f"{session.agency_id}/"):
        raise HTTPException(status_code=404, detail="File not found")
    try:
        data = storage_service.read_file(bucket, key)
    except AgencyHubError as e:
        raise http_error(e)
    media_type = mimetypes.guess_type(key)[0] or "application/octet-stream"
    return Response(content=data, media_type=media_type)
