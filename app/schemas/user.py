"""User-related Pydantic schemas for request/response validation."""

from typing import Optional

from .base import BaseModelSchema


class UserResponse(BaseModelSchema):
    """Schema for user response data."""

    auth_subject: str
    email: str
    full_name: Optional[str]
    is_active: bool
    storage_used: int
    storage_quota: int
