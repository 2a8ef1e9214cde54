"""Background archive job and the stuck-download watchdog."""

import asyncio
import logging
from datetime import timedelta
from typing import Any
from uuid import UUID

from sqlalchemy import and_, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.domains.downloads.archive import ArchiveBuilder
from app.domains.files.tree import FileTree
from app.services.blob_store import LocalBlobStore
from models.base import utcnow
from models.download_request import DownloadRequest, DownloadStatus
from models.file_item import FileItem

logger = logging.getLogger(__name__)

ERROR_MESSAGE_LIMIT = 1000
CANCELLED_MESSAGE = "Archive job was cancelled"


class SourceVanishedError(Exception):
    """The folder being archived was purged while the job was queued or running."""


async def transition(
    db: AsyncSession,
    request_pk: UUID,
    from_status: DownloadStatus | tuple[DownloadStatus, ...],
    to_status: DownloadStatus,
    **values: Any,
) -> bool:
    """Compare-and-set the status of one request; False if it was not in ``from_status``."""
    allowed = from_status if isinstance(from_status, tuple) else (from_status,)
    stmt = (
        update(DownloadRequest)
        .where(and_(DownloadRequest.id == request_pk, DownloadRequest.status.in_(allowed)))
        .values(status=to_status, updated_at=utcnow(), **values)
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    return result.rowcount == 1


async def _build_archive(
    db: AsyncSession, blob_store: LocalBlobStore, request: DownloadRequest
) -> str:
    folder = await db.get(FileItem, request.file_item_id)
    if folder is None:
        raise SourceVanishedError("Source folder no longer exists")

    builder = ArchiveBuilder(FileTree(db), blob_store)
    with blob_store.open_sink(f"zips/{request.user_id}", f"{folder.name}.zip") as (locator, sink):
        await builder.build(folder, sink)
    return locator


def _describe(exc: BaseException) -> str:
    if isinstance(exc, asyncio.TimeoutError):
        return "Archive job timed out"
    message = str(exc) or exc.__class__.__name__
    return message[:ERROR_MESSAGE_LIMIT]


async def _fail(db: AsyncSession, request_pk: UUID, message: str) -> None:
    await db.rollback()
    moved = await transition(
        db,
        request_pk,
        DownloadStatus.PROCESSING,
        DownloadStatus.FAILED,
        error_message=message,
        completed_at=utcnow(),
    )
    await db.commit()
    if not moved:
        logger.warning("Download %s already left PROCESSING, failure not recorded", request_pk)


async def run_archive_job(
    session_factory: async_sessionmaker,
    blob_store: LocalBlobStore,
    request_pk: UUID,
    timeout: float | None = None,
) -> DownloadStatus | None:
    """Build the archive for one download request.

    Claims the request with PENDING -> PROCESSING; a request that is not
    PENDING is left alone, so running the job twice is harmless. Every
    exception lands the request in FAILED with its message; nothing is
    raised to the scheduler. Returns the terminal status written, or None if
    the request was not claimed.
    """
    async with session_factory() as db:
        claimed = await transition(
            db, request_pk, DownloadStatus.PENDING, DownloadStatus.PROCESSING, started_at=utcnow()
        )
        await db.commit()
        if not claimed:
            logger.info("Download %s is not pending, skipping", request_pk)
            return None

        request = await db.get(DownloadRequest, request_pk, populate_existing=True)
        logger.info("Starting async zip creation for request: %s", request.request_id)

        try:
            locator = await asyncio.wait_for(_build_archive(db, blob_store, request), timeout)
        except asyncio.CancelledError:
            await _fail(db, request_pk, CANCELLED_MESSAGE)
            raise
        except Exception as e:
            logger.exception("Failed to create zip file for request: %s", request_pk)
            await _fail(db, request_pk, _describe(e))
            return DownloadStatus.FAILED

        moved = await transition(
            db,
            request_pk,
            DownloadStatus.PROCESSING,
            DownloadStatus.READY,
            download_path=locator,
            completed_at=utcnow(),
        )
        await db.commit()
        if not moved:
            # the watchdog failed it meanwhile; the archive has no owner now
            blob_store.delete(locator)
            logger.warning("Download %s left PROCESSING before completion", request_pk)
            return DownloadStatus.FAILED

        logger.info("Zip creation completed for request: %s", request.request_id)
        return DownloadStatus.READY


async def reconcile_stuck_downloads(db: AsyncSession, threshold_minutes: int) -> int:
    """Fail requests that have sat in PENDING or PROCESSING longer than the threshold."""
    cutoff = utcnow() - timedelta(minutes=threshold_minutes)
    stmt = (
        update(DownloadRequest)
        .where(
            and_(
                DownloadRequest.status.in_([DownloadStatus.PENDING, DownloadStatus.PROCESSING]),
                DownloadRequest.updated_at < cutoff,
            )
        )
        .values(
            status=DownloadStatus.FAILED,
            error_message="Archive job did not finish in time",
            completed_at=utcnow(),
            updated_at=utcnow(),
        )
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    await db.commit()
    count = result.rowcount or 0
    if count:
        logger.warning("Marked %d stuck download requests as FAILED", count)
    return count
