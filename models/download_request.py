"""
DownloadRequest model: lifecycle record of an asynchronous folder archive.
"""

import enum

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Index, String, Text
from sqlalchemy.orm import relationship

from .base import UUID, BaseModel


class DownloadStatus(str, enum.Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    READY = "READY"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (DownloadStatus.READY, DownloadStatus.FAILED)


class DownloadRequest(BaseModel):
    """
    Represents one folder download.

    Status moves PENDING -> PROCESSING -> READY | FAILED exactly once per
    step. ``download_path`` is set only when READY, ``error_message`` only
    when FAILED. ``request_id`` is the public, unguessable handle.
    """

    __tablename__ = "download_requests"
    __table_args__ = (Index("idx_download_status_updated", "status", "updated_at"),)

    request_id = Column(String(64), unique=True, nullable=False, index=True)
    file_item_id = Column(UUID(), ForeignKey("file_items.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(UUID(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    status = Column(
        Enum(DownloadStatus, native_enum=False, length=20),
        default=DownloadStatus.PENDING,
        nullable=False,
    )
    download_path = Column(String(500))
    error_message = Column(Text)
    started_at = Column(DateTime)
    completed_at = Column(DateTime)

    # Relationships
    file_item = relationship("FileItem")
    user = relationship("User", back_populates="download_requests")
