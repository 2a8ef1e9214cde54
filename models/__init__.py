"""
Models package initialization.
"""

from .base import Base, BaseModel
from .download_request import DownloadRequest, DownloadStatus
from .file_item import FileItem, FileType
from .file_permission import FilePermission, PermissionLevel
from .user import User

__all__ = [
    "Base",
    "BaseModel",
    "User",
    "FileItem",
    "FileType",
    "FilePermission",
    "PermissionLevel",
    "DownloadRequest",
    "DownloadStatus",
]
