"""Download request Pydantic schemas."""

from typing import Optional

from models.download_request import DownloadStatus

from .base import BaseSchema


class DownloadInitiated(BaseSchema):
    """Schema returned when an archive download is requested."""

    request_id: str
    status: DownloadStatus
    message: str = "Download request created"


class DownloadStatusView(BaseSchema):
    """Polling view of a download request."""

    request_id: str
    status: DownloadStatus
    download_url: Optional[str] = None
    message: str
