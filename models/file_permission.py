"""
FilePermission model: a share of one item with one user.
"""

import enum

from sqlalchemy import Column, DateTime, Enum, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from .base import UUID, BaseModel, utcnow


class PermissionLevel(str, enum.Enum):
    VIEW = "VIEW"
    EDIT = "EDIT"


class FilePermission(BaseModel):
    """
    Grants ``user`` access to ``file_item`` at ``permission_level``.

    At most one row exists per ``(file_item_id, user_id)``; re-sharing updates
    the level in place.
    """

    __tablename__ = "file_permissions"
    __table_args__ = (
        UniqueConstraint("file_item_id", "user_id", name="uq_permission_item_user"),
    )

    file_item_id = Column(
        UUID(), ForeignKey("file_items.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(UUID(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    permission_level = Column(Enum(PermissionLevel, native_enum=False, length=10), nullable=False)
    shared_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    file_item = relationship("FileItem", back_populates="permissions")
    user = relationship("User", back_populates="permissions")
