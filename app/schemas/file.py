"""File and folder Pydantic schemas for request/response validation."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import Field, field_validator

from models.file_item import FileType

from .base import BaseModelSchema, BaseSchema

FORBIDDEN_NAME_CHARS = ("/", "\\", "\x00")


class FolderCreate(BaseSchema):
    """Schema for creating a folder."""

    name: str = Field(..., min_length=1, max_length=255, description="Folder name")
    parent_id: Optional[UUID] = Field(None, description="Parent folder ID, root when omitted")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate folder name is non-blank and a single path segment."""
        v = v.strip()
        if not v:
            raise ValueError("Folder name cannot be empty")
        if v in (".", "..") or any(ch in v for ch in FORBIDDEN_NAME_CHARS):
            raise ValueError("Folder name contains invalid characters")
        return v


class FileItemResponse(BaseModelSchema):
    """Schema for a file or folder in responses."""

    name: str
    type: FileType
    size: int
    mime_type: Optional[str] = None
    parent_id: Optional[UUID] = None
    owner_id: UUID
    can_edit: bool = False


class FileListFilter(BaseSchema):
    """Query filters for listing files."""

    parent_id: Optional[UUID] = None
    q: Optional[str] = Field(None, max_length=255)
    type: Optional[FileType] = None
    from_size: Optional[int] = Field(None, ge=0)
    to_size: Optional[int] = Field(None, ge=0)


class FileUploadResult(BaseSchema):
    """Schema for the result of a multi-file upload."""

    files: list[FileItemResponse]
    success_count: int
    total_count: int


class SharedItemResponse(BaseSchema):
    """An item shared with the current user."""

    id: UUID
    name: str
    type: FileType
    size: int
    mime_type: Optional[str] = None
    owner_id: UUID
    permission_level: str
    created_at: datetime
    can_edit: bool = False
