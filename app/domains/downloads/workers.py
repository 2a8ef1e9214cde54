"""Dispatchers that hand archive jobs to a background executor."""

import asyncio
import logging
from typing import Protocol
from uuid import UUID

from sqlalchemy.ext.asyncio import async_sessionmaker

from app.core.config import DownloadExecutorEnum, settings
from app.database import AsyncSessionLocal
from app.domains.downloads.jobs import CANCELLED_MESSAGE, run_archive_job, transition
from app.services.blob_store import LocalBlobStore, get_blob_store
from models.base import utcnow
from models.download_request import DownloadStatus

logger = logging.getLogger(__name__)


class ArchiveDispatcher(Protocol):
    def submit(self, request_pk: UUID, request_id: str) -> None: ...


class ArchiveWorkerPool:
    """Runs archive jobs as asyncio tasks on the current event loop.

    At most ``max_concurrent`` jobs build at once; the rest wait on the
    semaphore. A request id that is already queued or running is not
    submitted twice.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker | None = None,
        blob_store: LocalBlobStore | None = None,
        max_concurrent: int | None = None,
        timeout: float | None = None,
    ):
        self.session_factory = session_factory or AsyncSessionLocal
        self.blob_store = blob_store or get_blob_store()
        self.max_concurrent = max_concurrent or settings.archive_max_concurrent_jobs
        self.timeout = timeout if timeout is not None else settings.archive_job_timeout
        self._semaphore = asyncio.Semaphore(self.max_concurrent)
        self._tasks: dict[str, asyncio.Task] = {}
        self._request_pks: dict[str, UUID] = {}

    @property
    def active_jobs(self) -> int:
        return len(self._tasks)

    def submit(self, request_pk: UUID, request_id: str) -> None:
        if request_id in self._tasks:
            logger.debug("Archive job %s already scheduled", request_id)
            return
        task = asyncio.get_running_loop().create_task(
            self._run(request_pk), name=f"archive-{request_id}"
        )
        self._tasks[request_id] = task
        self._request_pks[request_id] = request_pk
        task.add_done_callback(lambda _t: self._forget(request_id))

    def _forget(self, request_id: str) -> None:
        self._tasks.pop(request_id, None)
        self._request_pks.pop(request_id, None)

    async def _run(self, request_pk: UUID) -> None:
        async with self._semaphore:
            try:
                await run_archive_job(self.session_factory, self.blob_store, request_pk, self.timeout)
            except asyncio.CancelledError:
                raise
            except Exception:
                # run_archive_job records its own failures; this is a database outage
                logger.exception("Archive job %s crashed", request_pk)

    async def drain(self) -> None:
        """Wait until every submitted job has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks.values()), return_exceptions=True)

    async def shutdown(self) -> None:
        """Cancel outstanding jobs and record each of them as FAILED.

        A job cancelled while building fails itself; one still waiting for a
        slot never claimed its request, so it is failed here from PENDING.
        """
        jobs = [(task, self._request_pks[request_id]) for request_id, task in self._tasks.items()]
        for task, _ in jobs:
            task.cancel()
        if jobs:
            await asyncio.gather(*(task for task, _ in jobs), return_exceptions=True)
        unclaimed = await self._fail_unclaimed([request_pk for _, request_pk in jobs])
        logger.info(
            "Archive worker pool stopped (%d jobs cancelled, %d never started)", len(jobs), unclaimed
        )

    async def _fail_unclaimed(self, request_pks: list[UUID]) -> int:
        if not request_pks:
            return 0
        failed = 0
        async with self.session_factory() as db:
            for request_pk in request_pks:
                if await transition(
                    db,
                    request_pk,
                    DownloadStatus.PENDING,
                    DownloadStatus.FAILED,
                    error_message=CANCELLED_MESSAGE,
                    completed_at=utcnow(),
                ):
                    failed += 1
            await db.commit()
        return failed


class CeleryArchiveDispatcher:
    """Sends archive jobs to the Celery worker fleet."""

    def submit(self, request_pk: UUID, request_id: str) -> None:
        from app.tasks.download_tasks import build_archive_task

        build_archive_task.apply_async(args=[str(request_pk)], task_id=f"archive-{request_id}")
        logger.info("Queued archive job %s on Celery", request_id)


_dispatcher: ArchiveDispatcher | None = None


def get_download_dispatcher() -> ArchiveDispatcher:
    """Process-wide dispatcher chosen by ``settings.download_executor``."""
    global _dispatcher
    if _dispatcher is None:
        if settings.download_executor == DownloadExecutorEnum.celery:
            _dispatcher = CeleryArchiveDispatcher()
        else:
            _dispatcher = ArchiveWorkerPool()
    return _dispatcher


def reset_download_dispatcher() -> None:
    global _dispatcher
    _dispatcher = None
