"""Storage service - file validation, storage keys and the storage backend.

Buckets and key layouts:
    attachments  {agency_id}/{uuid}.{ext}
    logos        {agency_id}.{ext}   (overwritten on re-upload)
    avatars      {user_id}.{ext}     (overwritten on re-upload)

The backend is the local filesystem (default) or S3 via boto3.
"""

import logging
import os
import uuid
from dataclasses import dataclass
from uuid import UUID

import boto3
from botocore.exceptions import ClientError
from sqlalchemy.orm import Session

from agencyhub.core.config import settings
from agencyhub.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from agencyhub.core.permissions import Viewer, has_capability, require_capability
from agencyhub.db.enums import StorageBucket
from agencyhub.db.models import Agency, Attachment, Request, RequestMessage, User
from agencyhub.db.types import utcnow

logger = logging.getLogger(__name__)


# =============================================================================
# Configuration
# =============================================================================

MB = 1024 * 1024

ALLOWED_ATTACHMENT_TYPES = {
    "image/png",
    "image/jpeg",
    "image/gif",
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "text/plain",
    "application/zip",
}
MAX_ATTACHMENT_SIZE_BYTES = 25 * MB
MAX_ATTACHMENTS_PER_UPLOAD = 10

ALLOWED_LOGO_TYPES = {"image/png", "image/jpeg", "image/svg+xml"}
MAX_LOGO_SIZE_BYTES = 2 * MB

ALLOWED_AVATAR_TYPES = {"image/png", "image/jpeg", "image/gif", "image/webp"}
MAX_AVATAR_SIZE_BYTES = 2 * MB

EXTENSION_BY_TYPE = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/svg+xml": "svg",
    "application/pdf": "pdf",
    "application/msword": "doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "application/vnd.ms-excel": "xls",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": "xlsx",
    "text/plain": "txt",
    "application/zip": "zip",
}

SIGNED_URL_EXPIRY_SECONDS = 300  # 5 minutes


@dataclass
class UploadFile:
    """An incoming file, already read into memory."""
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


# =============================================================================
# Validation
# =============================================================================

def _validate(
    content_type: str,
    file_size: int,
    allowed_types: set[str],
    max_bytes: int,
) -> tuple[bool, str | None]:
    if content_type not in allowed_types:
        return False, f"Content type '{content_type}' not allowed"
    if file_size <= 0:
        return False, "File is empty"
    if file_size > max_bytes:
        return False, f"File size exceeds {max_bytes // MB} MB limit"
    return True, None


def validate_attachment(content_type: str, file_size: int) -> tuple[bool, str | None]:
    """Returns (is_valid, error_message)."""
    return _validate(content_type, file_size, ALLOWED_ATTACHMENT_TYPES, MAX_ATTACHMENT_SIZE_BYTES)


def validate_logo(content_type: str, file_size: int) -> tuple[bool, str | None]:
    return _validate(content_type, file_size, ALLOWED_LOGO_TYPES, MAX_LOGO_SIZE_BYTES)


def validate_avatar(content_type: str, file_size: int) -> tuple[bool, str | None]:
    return _validate(content_type, file_size, ALLOWED_AVATAR_TYPES, MAX_AVATAR_SIZE_BYTES)


def validate_batch(files: list[UploadFile]) -> None:
    """
    Validate a whole upload batch before anything is stored.

    Raises:
        ValidationError: empty batch, too many files, or any invalid file
    """
    if not files:
        raise ValidationError("No files provided")
    if len(files) > MAX_ATTACHMENTS_PER_UPLOAD:
        raise ValidationError(f"At most {MAX_ATTACHMENTS_PER_UPLOAD} files per upload")
    for f in files:
        is_valid, error = validate_attachment(f.content_type, f.size)
        if not is_valid:
            raise ValidationError(f"{f.filename}: {error}")


# =============================================================================
# Keys
# =============================================================================

def file_extension(filename: str, content_type: str) -> str:
    """Extension from the filename, else from the content type."""
    if "." in filename:
        ext = filename.rsplit(".", 1)[-1].lower()
        if ext.isalnum() and len(ext) <= 10:
            return ext
    return EXTENSION_BY_TYPE.get(content_type, "bin")


def attachment_key(agency_id: UUID, filename: str, content_type: str) -> str:
    return f"{agency_id}/{uuid.uuid4()}.{file_extension(filename, content_type)}"


def logo_key(agency_id: UUID, filename: str, content_type: str) -> str:
    return f"{agency_id}.{file_extension(filename, content_type)}"


def avatar_key(user_id: UUID, filename: str, content_type: str) -> str:
    return f"{user_id}.{file_extension(filename, content_type)}"


# =============================================================================
# Storage Backend
# =============================================================================

def _get_s3_client():
    """Get boto3 S3 client."""
    return boto3.client(
        "s3",
        region_name=settings.S3_REGION,
        endpoint_url=settings.S3_ENDPOINT_URL or None,
        aws_access_key_id=settings.AWS_ACCESS_KEY_ID or None,
        aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY or None,
    )


def bucket_name(bucket: StorageBucket) -> str:
    return f"{settings.S3_BUCKET_PREFIX}-{bucket.value}"


def _local_path(bucket: StorageBucket, key: str) -> str:
    root = os.path.realpath(os.path.join(settings.LOCAL_STORAGE_PATH, bucket.value))
    path = os.path.realpath(os.path.join(root, key))
    if not path.startswith(root + os.sep):
        raise ValidationError("Invalid storage key")
    return path


def store_file(bucket: StorageBucket, key: str, data: bytes, content_type: str) -> None:
    """Write a file to the configured backend, replacing any existing object."""
    if settings.STORAGE_BACKEND == "s3":
        _get_s3_client().put_object(
            Bucket=bucket_name(bucket),
            Key=key,
            Body=data,
            ContentLength=len(data),
            ContentType=content_type,
        )
        return

    path = _local_path(bucket, key)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "wb") as f:
        f.write(data)


def read_file(bucket: StorageBucket, key: str) -> bytes:
    if settings.STORAGE_BACKEND == "s3":
        try:
            obj = _get_s3_client().get_object(Bucket=bucket_name(bucket), Key=key)
        except ClientError:
            raise NotFoundError("File not found")
        return obj["Body"].read()

    path = _local_path(bucket, key)
    if not os.path.exists(path):
        raise NotFoundError("File not found")
    with open(path, "rb") as f:
        return f.read()


def delete_file(bucket: StorageBucket, key: str) -> None:
    if settings.STORAGE_BACKEND == "s3":
        _get_s3_client().delete_object(Bucket=bucket_name(bucket), Key=key)
        return
    path = _local_path(bucket, key)
    if os.path.exists(path):
        os.remove(path)


def file_url(bucket: StorageBucket, key: str) -> str:
    """Signed download URL (S3) or the API download path (local)."""
    if settings.STORAGE_BACKEND == "s3":
        try:
            return _get_s3_client().generate_presigned_url(
                "get_object",
                Params={"Bucket": bucket_name(bucket), "Key": key},
                ExpiresIn=SIGNED_URL_EXPIRY_SECONDS,
            )
        except ClientError:
            logger.warning("Could not sign storage URL", extra={"bucket": bucket.value})
            return ""
    return f"/files/{bucket.value}/{key}"


# =============================================================================
# Attachments
# =============================================================================

def upload_attachments(
    db: Session,
    viewer: Viewer,
    request: Request,
    files: list[UploadFile],
    message: RequestMessage | None = None,
) -> list[Attachment]:
    """Validate the batch, store every file and record attachment rows."""
    validate_batch(files)
    if message is not None and message.request_id != request.id:
        raise ValidationError("Message does not belong to this request")

    created = []
    for f in files:
        key = attachment_key(viewer.agency_id, f.filename, f.content_type)
        store_file(StorageBucket.ATTACHMENTS, key, f.data, f.content_type)
        attachment = Attachment(
            agency_id=viewer.agency_id,
            request_id=request.id,
            message_id=message.id if message else None,
            uploaded_by=viewer.user_id,
            filename=os.path.basename(f.filename)[:255] or "file",
            storage_key=key,
            content_type=f.content_type,
            file_size=f.size,
        )
        db.add(attachment)
        created.append(attachment)
    db.commit()
    for attachment in created:
        db.refresh(attachment)
    return created


def list_attachments(db: Session, viewer: Viewer, request_id: UUID) -> list[Attachment]:
    """Live attachments of a request; files on internal messages are staff-only."""
    query = (
        db.query(Attachment)
        .outerjoin(RequestMessage, RequestMessage.id == Attachment.message_id)
        .filter(
            Attachment.request_id == request_id,
            Attachment.agency_id == viewer.agency_id,
            Attachment.deleted_at.is_(None),
        )
    )
    if not has_capability(viewer, "view_internal_messages"):
        query = query.filter(
            (Attachment.message_id.is_(None)) | (RequestMessage.is_internal.is_(False))
        )
    return query.order_by(Attachment.created_at, Attachment.id).all()


def get_attachment(db: Session, viewer: Viewer, attachment_id: UUID) -> Attachment:
    """
    Fetch an attachment visible to the viewer.

    Visibility follows the parent request, checked by the caller.
    """
    attachment = (
        db.query(Attachment)
        .filter(
            Attachment.id == attachment_id,
            Attachment.agency_id == viewer.agency_id,
            Attachment.deleted_at.is_(None),
        )
        .first()
    )
    if not attachment:
        raise NotFoundError("Attachment not found")
    if attachment.message_id and not has_capability(viewer, "view_internal_messages"):
        message = db.get(RequestMessage, attachment.message_id)
        if message and message.is_internal:
            raise NotFoundError("Attachment not found")
    return attachment


def delete_attachment(db: Session, viewer: Viewer, attachment: Attachment) -> None:
    """Soft delete by the uploader or staff. The stored file is kept."""
    if attachment.uploaded_by != viewer.user_id and not viewer.is_staff:
        raise PermissionDeniedError("Not authorized to delete this attachment")
    attachment.deleted_at = utcnow()
    db.commit()


# =============================================================================
# Logos / Avatars
# =============================================================================

def upload_logo(db: Session, viewer: Viewer, f: UploadFile) -> Agency:
    """Store the agency logo, replacing the previous one."""
    require_capability(viewer, "manage_agency")
    is_valid, error = validate_logo(f.content_type, f.size)
    if not is_valid:
        raise ValidationError(error)

    agency = db.get(Agency, viewer.agency_id)
    key = logo_key(agency.id, f.filename, f.content_type)
    if agency.logo_path and agency.logo_path != key:
        delete_file(StorageBucket.LOGOS, agency.logo_path)
    store_file(StorageBucket.LOGOS, key, f.data, f.content_type)
    agency.logo_path = key
    db.commit()
    db.refresh(agency)
    return agency


def upload_avatar(db: Session, user_id: UUID, f: UploadFile) -> User:
    """Store the user's avatar, replacing the previous one."""
    is_valid, error = validate_avatar(f.content_type, f.size)
    if not is_valid:
        raise ValidationError(error)

    user = db.get(User, user_id)
    key = avatar_key(user.id, f.filename, f.content_type)
    if user.avatar_path and user.avatar_path != key:
        delete_file(StorageBucket.AVATARS, user.avatar_path)
    store_file(StorageBucket.AVATARS, key, f.data, f.content_type)
    user.avatar_path = key
    db.commit()
    db.refresh(user)
    return user
