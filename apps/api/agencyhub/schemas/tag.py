"""Pydantic schemas for tags."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from agencyhub.db.enums import TagColor


class TagCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    color: TagColor = TagColor.GRAY


class TagUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=50)
    color: TagColor | None = None


class TagStyle(BaseModel):
    background: str
    text: str
    border: str


class TagRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    color: str
    style: TagStyle | None = None


class RequestTagsSet(BaseModel):
    """Replace a request's tag set."""
    tag_ids: list[UUID] = Field(default_factory=list, max_length=50)
