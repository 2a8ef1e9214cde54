"""
FileItem model: one node of an owner's file/folder tree.
"""

import enum

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    String,
    text,
)
from sqlalchemy.orm import relationship

from .base import UUID, BaseModel


class FileType(str, enum.Enum):
    FILE = "FILE"
    FOLDER = "FOLDER"


class FileItem(BaseModel):
    """
    Represents a file or folder owned by a single user.

    Folders always have ``size == 0`` and no ``storage_path``; sizes are not
    aggregated upward. ``parent_id`` of ``None`` means the item sits at the
    owner's root. Soft delete only flips ``deleted``/``deleted_at``; the row
    and blob survive until the retention sweep purges them.
    """

    __tablename__ = "file_items"
    __table_args__ = (
        Index("idx_owner_parent", "owner_id", "parent_id"),
        Index("idx_type", "type"),
        Index("idx_deleted", "deleted", "deleted_at"),
        # Live folders must have unique names per (owner, parent); NULL parents
        # are distinct in a unique index, so root folders get their own.
        Index(
            "uq_live_folder_name",
            "owner_id",
            "parent_id",
            "name",
            unique=True,
            sqlite_where=text("type = 'FOLDER' AND deleted = 0"),
            postgresql_where=text("type = 'FOLDER' AND deleted = false"),
        ),
        Index(
            "uq_live_root_folder_name",
            "owner_id",
            "name",
            unique=True,
            sqlite_where=text("type = 'FOLDER' AND deleted = 0 AND parent_id IS NULL"),
            postgresql_where=text("type = 'FOLDER' AND deleted = false AND parent_id IS NULL"),
        ),
    )

    name = Column(String(255), nullable=False)
    type = Column(Enum(FileType, native_enum=False, length=10), nullable=False)
    size = Column(BigInteger, default=0, nullable=False)
    mime_type = Column(String(100))
    storage_path = Column(String(500))

    owner_id = Column(UUID(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    parent_id = Column(UUID(), ForeignKey("file_items.id", ondelete="CASCADE"))

    deleted = Column(Boolean, default=False, nullable=False)
    deleted_at = Column(DateTime)

    # Relationships
    owner = relationship("User", back_populates="files")
    parent = relationship("FileItem", remote_side="FileItem.id", back_populates="children")
    children = relationship(
        "FileItem", back_populates="parent", cascade="all, delete-orphan", passive_deletes=True
    )
    permissions = relationship(
        "FilePermission",
        back_populates="file_item",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def is_folder(self) -> bool:
        return self.type == FileType.FOLDER

    @property
    def is_file(self) -> bool:
        return self.type == FileType.FILE

    def __repr__(self) -> str:
        return f"<FileItem {self.type.value if self.type else '?'} {self.name!r} id={self.id}>"
