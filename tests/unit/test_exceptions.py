"""
Unit tests for custom exceptions.

Checks that each exception maps to the right HTTP status and error code and
that the structured detail is what the error handlers expect.
"""

import pytest

from app.exceptions.base import (
    AppPermissionError,
    BaseAppException,
    ConflictError,
    IntegrityFaultError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from app.exceptions.file import (
    ArchiveMissingError,
    BlobStorageError,
    DownloadNotReadyError,
    DownloadRequestNotFoundError,
    FileItemNotFoundError,
    FilePermissionError,
    FolderNameConflictError,
    InvalidParentError,
    QuotaExceededError,
    SelfShareError,
    ShareNotFoundError,
    UserNotFoundError,
)


class TestBaseExceptions:
    """Test cases for the base exception hierarchy."""

    def test_base_exception_detail(self):
        exc = BaseAppException("Boom", status_code=418, error_code="TEAPOT", details={"a": 1})

        assert exc.status_code == 418
        assert exc.detail == {"message": "Boom", "error_code": "TEAPOT", "details": {"a": 1}}
        assert str(exc) == "Boom"

    def test_details_default_to_empty_dict(self):
        assert NotFoundError().details == {}

    @pytest.mark.parametrize(
        "exc_class,status_code,error_code",
        [
            (NotFoundError, 404, "NOT_FOUND"),
            (AppPermissionError, 403, "PERMISSION_DENIED"),
            (ValidationError, 422, "VALIDATION_ERROR"),
            (ConflictError, 409, "CONFLICT"),
            (InvalidStateError, 409, "INVALID_STATE"),
            (IntegrityFaultError, 500, "INTEGRITY_FAULT"),
        ],
    )
    def test_status_and_code(self, exc_class, status_code, error_code):
        exc = exc_class()

        assert exc.status_code == status_code
        assert exc.error_code == error_code


class TestFileExceptions:
    """Test cases for file, sharing and download exceptions."""

    @pytest.mark.parametrize(
        "exc_class,parent,message",
        [
            (FileItemNotFoundError, NotFoundError, "File or folder not found"),
            (UserNotFoundError, NotFoundError, "User not found"),
            (ShareNotFoundError, NotFoundError, "Share not found"),
            (DownloadRequestNotFoundError, NotFoundError, "Download request not found"),
            (FilePermissionError, AppPermissionError, "You don't have permission to access this resource"),
            (InvalidParentError, ValidationError, "Parent must be a folder"),
            (SelfShareError, ValidationError, "Cannot share with yourself"),
            (QuotaExceededError, ValidationError, "Storage quota exceeded"),
            (FolderNameConflictError, ConflictError, "A folder with this name already exists in this location"),
            (DownloadNotReadyError, InvalidStateError, "Download is not ready yet"),
            (ArchiveMissingError, IntegrityFaultError, "Zip file not found"),
        ],
    )
    def test_defaults(self, exc_class, parent, message):
        exc = exc_class()

        assert isinstance(exc, parent)
        assert exc.message == message

    def test_custom_message(self):
        exc = FilePermissionError("Only the owner can remove shares")

        assert exc.detail["message"] == "Only the owner can remove shares"
        assert exc.status_code == 403

    def test_blob_storage_error(self):
        exc = BlobStorageError("disk full")

        assert exc.status_code == 500
        assert exc.error_code == "STORAGE_ERROR"
