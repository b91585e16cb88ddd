"""Pydantic schemas for attachments and uploaded images."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class AttachmentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    request_id: UUID | None
    message_id: UUID | None
    uploaded_by: UUID
    filename: str
    content_type: str
    file_size: int
    created_at: datetime
    download_url: str | None = None


class ImageUploadRead(BaseModel):
    """Result of a logo or avatar upload."""
    path: str
    url: str
