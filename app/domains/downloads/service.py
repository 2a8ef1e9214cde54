"""Download orchestrator: create archive requests, report status, serve archives."""

import logging
import secrets
from collections.abc import Iterator
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.core.config import settings
from app.domains.downloads.jobs import transition
from app.domains.downloads.workers import ArchiveDispatcher
from app.domains.files.access import AccessControl
from app.domains.files.tree import FileTree
from app.exceptions.base import ValidationError
from app.exceptions.file import (
    ArchiveMissingError,
    DownloadNotReadyError,
    DownloadRequestNotFoundError,
    FilePermissionError,
)
from app.schemas.download import DownloadStatusView
from app.services.blob_store import LocalBlobStore, get_blob_store
from models.base import utcnow
from models.download_request import DownloadRequest, DownloadStatus
from models.user import User

logger = logging.getLogger(__name__)

STATUS_MESSAGES = {
    DownloadStatus.PENDING: "Download request is pending",
    DownloadStatus.PROCESSING: "Zip file is being created",
    DownloadStatus.READY: "Zip file is ready for download",
}


@dataclass
class ArchiveDownload:
    filename: str
    size: int
    chunks: Iterator[bytes]


def status_message(request: DownloadRequest) -> str:
    if request.status == DownloadStatus.FAILED:
        return f"Download failed: {request.error_message}"
    return STATUS_MESSAGES[request.status]


class DownloadService:
    """Service class for asynchronous folder downloads."""

    def __init__(
        self,
        db: AsyncSession,
        dispatcher: ArchiveDispatcher,
        blob_store: LocalBlobStore | None = None,
    ):
        self.db = db
        self.dispatcher = dispatcher
        self.blob_store = blob_store or get_blob_store()
        self.tree = FileTree(db)
        self.access = AccessControl(db)

    async def initiate(self, folder_id: UUID, user: User) -> DownloadRequest:
        """Record a PENDING request for ``folder_id`` and hand it to the dispatcher.

        Returns as soon as the request row is committed; the archive is built
        in the background.
        """
        folder = await self.tree.find_by_id(folder_id)
        await self.access.require_read(folder, user)
        if not folder.is_folder:
            raise ValidationError("Only folders can be downloaded as zip")

        request = DownloadRequest(
            request_id=secrets.token_urlsafe(32),
            file_item_id=folder.id,
            user_id=user.id,
            status=DownloadStatus.PENDING,
        )
        self.db.add(request)
        await self.db.commit()
        await self.db.refresh(request)
        logger.info("Download request created: %s for folder: %s", request.request_id, folder.name)

        try:
            self.dispatcher.submit(request.id, request.request_id)
        except Exception as e:
            logger.exception("Could not schedule archive job %s", request.request_id)
            await transition(
                self.db,
                request.id,
                DownloadStatus.PENDING,
                DownloadStatus.FAILED,
                error_message=f"Could not schedule archive job: {e}",
                completed_at=utcnow(),
            )
            await self.db.commit()
            await self.db.refresh(request)
        return request

    async def get_status(self, request_id: str, user: User) -> DownloadStatusView:
        request = await self._get_own_request(request_id, user)
        download_url = None
        if request.status == DownloadStatus.READY:
            download_url = f"{settings.api_prefix}/files/downloads/{request.request_id}/file"
        return DownloadStatusView(
            request_id=request.request_id,
            status=request.status,
            download_url=download_url,
            message=status_message(request),
        )

    async def get_archive(self, request_id: str, user: User) -> ArchiveDownload:
        """Open the finished archive of a READY request for streaming."""
        request = await self._get_own_request(request_id, user)
        if request.status != DownloadStatus.READY:
            raise DownloadNotReadyError()
        if not request.download_path or not self.blob_store.exists(request.download_path):
            logger.error("Archive for READY request %s is missing", request.request_id)
            raise ArchiveMissingError()

        folder = await self.tree.get(request.file_item_id)
        folder_name = folder.name if folder is not None else "download"
        return ArchiveDownload(
            filename=f"{folder_name}.zip",
            size=self.blob_store.size(request.download_path),
            chunks=self.blob_store.load(request.download_path),
        )

    async def _get_own_request(self, request_id: str, user: User) -> DownloadRequest:
        result = await self.db.execute(
            select(DownloadRequest)
            .where(DownloadRequest.request_id == request_id)
            .execution_options(populate_existing=True)
        )
        request = result.scalar_one_or_none()
        if request is None:
            raise DownloadRequestNotFoundError()
        if request.user_id != user.id:
            raise FilePermissionError("You don't have permission to access this download")
        return request
