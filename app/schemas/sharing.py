"""Sharing Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import EmailStr, Field

from models.file_permission import PermissionLevel

from .base import BaseSchema


class ShareRequest(BaseSchema):
    """Schema for sharing an item with another user."""

    email: EmailStr = Field(..., description="Recipient's email address")
    permission_level: PermissionLevel = Field(PermissionLevel.VIEW, description="VIEW or EDIT")


class ShareResponse(BaseSchema):
    """A single grant on an item."""

    file_id: UUID
    user_id: UUID
    email: str
    permission_level: PermissionLevel
    shared_at: datetime
