"""Celery tasks for folder downloads."""

import asyncio
import logging
from typing import Any
from uuid import UUID

from app.celery_app import celery_app
from app.core.config import settings
from app.domains.downloads.jobs import reconcile_stuck_downloads, run_archive_job
from app.services.blob_store import get_blob_store
from app.tasks.worker_db import task_session_factory

logger = logging.getLogger(__name__)


@celery_app.task(name="app.tasks.download_tasks.build_archive_task", bind=True)
def build_archive_task(self, request_pk: str) -> dict[str, Any]:
    """Build the ZIP for one download request.

    Failures are written to the request row by the job itself, so the task
    is never retried; a retry could not claim the request again anyway.
    """
    logger.info("Starting archive task for %s (Task ID: %s)", request_pk, self.request.id)
    status = asyncio.run(_build_archive_async(UUID(request_pk)))
    return {"request_pk": request_pk, "status": status.value if status else None}


async def _build_archive_async(request_pk: UUID):
    async with task_session_factory() as session_factory:
        return await run_archive_job(
            session_factory, get_blob_store(), request_pk, timeout=settings.archive_job_timeout
        )


@celery_app.task(name="app.tasks.download_tasks.reconcile_stuck_downloads_task", bind=True)
def reconcile_stuck_downloads_task(self) -> dict[str, Any]:
    """Fail download requests that never reached a terminal state."""
    try:
        count = asyncio.run(_reconcile_async())
    except Exception as e:
        logger.error("Stuck download reconciliation failed: %s", str(e))
        raise self.retry(exc=e, countdown=60, max_retries=3)
    return {"failed": count}


async def _reconcile_async() -> int:
    async with task_session_factory() as session_factory:
        async with session_factory() as db:
            return await reconcile_stuck_downloads(db, settings.stuck_download_threshold_minutes)
