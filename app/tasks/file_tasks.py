"""Celery tasks for file maintenance."""

import asyncio
import logging
from typing import Any

from app.celery_app import celery_app
from app.core.config import settings
from app.domains.files.cleanup import CleanupService
from app.services.blob_store import get_blob_store
from app.tasks.worker_db import task_session_factory

logger = logging.getLogger(__name__)


@celery_app.task(name="app.tasks.file_tasks.purge_deleted_items_task", bind=True)
def purge_deleted_items_task(self) -> dict[str, Any]:
    """Permanently delete items that have been in the trash past the retention window.

    Runs daily via Celery Beat.

    Returns:
        Dictionary with purge statistics
    """
    logger.info("Starting scheduled cleanup of deleted files (Task ID: %s)", self.request.id)

    try:
        result = asyncio.run(_purge_deleted_async())
        logger.info("Cleanup task completed: %s", result)
        return result

    except Exception as e:
        logger.error("Cleanup task failed: %s", str(e))
        raise self.retry(exc=e, countdown=60 * 5, max_retries=3)


async def _purge_deleted_async() -> dict[str, int]:
    async with task_session_factory() as session_factory:
        async with session_factory() as db:
            service = CleanupService(db, get_blob_store())
            return await service.purge_deleted(
                retention_days=settings.cleanup_retention_days,
                batch_size=settings.cleanup_batch_size,
            )
