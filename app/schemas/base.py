"""Base schemas shared by every API payload."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """Base schema class with common configuration."""
    model_config = ConfigDict(from_attributes=True)


class BaseModelSchema(BaseSchema):
    """Base schema for database rows (id plus timestamps)."""
    id: UUID
    created_at: datetime
    updated_at: datetime


class ItemList(BaseSchema):
    """``data`` payload of list endpoints."""
    items: list[dict[str, Any]]
    total: int

    @classmethod
    def of(cls, items: list[dict[str, Any]]) -> "ItemList":
        return cls(items=items, total=len(items))


class ResponseSchema(BaseSchema):
    """Standard success envelope: ``{"status", "message", "data"}``."""
    status: str
    message: Optional[str] = None
    data: Optional[dict] = None
