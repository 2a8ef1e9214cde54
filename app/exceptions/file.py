"""File, sharing and download exceptions."""

from .base import (
    AppPermissionError,
    BaseAppException,
    ConflictError,
    IntegrityFaultError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)


class FileItemNotFoundError(NotFoundError):
    """Raised when a file or folder does not exist."""

    def __init__(self, message: str = "File or folder not found"):
        super().__init__(message=message)


class UserNotFoundError(NotFoundError):
    """Raised when a user referenced by email or id does not exist."""

    def __init__(self, message: str = "User not found"):
        super().__init__(message=message)


class FilePermissionError(AppPermissionError):
    """Raised when a user may not read or modify an item."""

    def __init__(self, message: str = "You don't have permission to access this resource"):
        super().__init__(message=message)


class InvalidParentError(ValidationError):
    """Raised when the parent of a new item is not a folder."""

    def __init__(self, message: str = "Parent must be a folder"):
        super().__init__(message=message)


class FolderNameConflictError(ConflictError):
    """Raised when a live folder with the same name already exists in the location."""

    def __init__(self, message: str = "A folder with this name already exists in this location"):
        super().__init__(message=message)


class SelfShareError(ValidationError):
    """Raised when a user tries to share an item with themselves."""

    def __init__(self, message: str = "Cannot share with yourself"):
        super().__init__(message=message)


class ShareNotFoundError(NotFoundError):
    """Raised when revoking a share that does not exist."""

    def __init__(self, message: str = "Share not found"):
        super().__init__(message=message)


class QuotaExceededError(ValidationError):
    """Raised when an upload would exceed the size limit or the user's quota."""

    def __init__(self, message: str = "Storage quota exceeded"):
        super().__init__(message=message)


class DownloadRequestNotFoundError(NotFoundError):
    """Raised when polling an unknown download request."""

    def __init__(self, message: str = "Download request not found"):
        super().__init__(message=message)


class DownloadNotReadyError(InvalidStateError):
    """Raised when fetching an archive that is not READY."""

    def __init__(self, message: str = "Download is not ready yet"):
        super().__init__(message=message)


class ArchiveMissingError(IntegrityFaultError):
    """Raised when a READY download's archive blob is gone."""

    def __init__(self, message: str = "Zip file not found"):
        super().__init__(message=message)


class BlobStorageError(BaseAppException):
    """Raised when the blob store cannot store or resolve a locator."""

    def __init__(self, message: str = "File storage error"):
        super().__init__(message=message, status_code=500, error_code="STORAGE_ERROR")
