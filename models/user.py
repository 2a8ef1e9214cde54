"""
Provides the User model for the application's database schema.

A user owns a namespace of files and folders and a storage quota. Identity
comes from the external auth provider (``auth_subject``); the service never
stores credentials.

Attributes
----------
auth_subject : sqlalchemy.Column
    Unique subject identifier issued by the auth provider.
email : sqlalchemy.Column
    The email address of the user, unique. Sharing resolves recipients by it.
full_name : sqlalchemy.Column
    Optional display name.
is_active : sqlalchemy.Column
    Inactive users are rejected at authentication time.
storage_used : sqlalchemy.Column
    Bytes consumed by uploads. Incremented on upload only.
storage_quota : sqlalchemy.Column
    Maximum bytes the user may upload.
"""

from sqlalchemy import BigInteger, Boolean, Column, String
from sqlalchemy.orm import relationship

from .base import BaseModel

DEFAULT_STORAGE_QUOTA = 10 * 1024 * 1024 * 1024  # 10 GiB


class User(BaseModel):
    """
    Represents a user entity in the application.

    :ivar auth_subject: Subject identifier provided by the auth provider.
    :type auth_subject: str
    :ivar email: Email address of the user. It must be unique.
    :type email: str
    :ivar storage_used: Bytes consumed by the user's uploads.
    :type storage_used: int
    :ivar storage_quota: Upload allowance in bytes.
    :type storage_quota: int
    """

    __tablename__ = "users"

    auth_subject = Column(String(255), unique=True, nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    full_name = Column(String(100))
    is_active = Column(Boolean, default=True, nullable=False)
    storage_used = Column(BigInteger, default=0, nullable=False)
    storage_quota = Column(BigInteger, default=DEFAULT_STORAGE_QUOTA, nullable=False)

    # Relationships
    files = relationship(
        "FileItem", back_populates="owner", cascade="all, delete-orphan", passive_deletes=True
    )
    permissions = relationship(
        "FilePermission", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    download_requests = relationship(
        "DownloadRequest", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )

    @property
    def storage_available(self) -> int:
        return max((self.storage_quota or 0) - (self.storage_used or 0), 0)
