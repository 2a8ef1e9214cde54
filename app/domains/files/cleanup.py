"""Retention sweep: permanently remove items soft-deleted long enough ago."""

import logging
from datetime import timedelta
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.domains.files.tree import FileTree
from app.exceptions.file import BlobStorageError
from app.services.blob_store import LocalBlobStore, get_blob_store
from models.base import utcnow

logger = logging.getLogger(__name__)


class CleanupService:
    """Purges soft-deleted items past the retention window."""

    def __init__(self, db: AsyncSession, blob_store: LocalBlobStore | None = None):
        self.db = db
        self.blob_store = blob_store or get_blob_store()
        self.tree = FileTree(db)

    async def purge_deleted(
        self, retention_days: int | None = None, batch_size: int | None = None
    ) -> dict[str, int]:
        """Delete blobs and rows of items soft-deleted more than ``retention_days`` ago.

        Works in batches of ``batch_size``, committing after each item. An item
        that fails is logged, skipped for the rest of this pass and counted in
        ``failed``. Storage quota is left as is.
        """
        retention_days = retention_days if retention_days is not None else settings.cleanup_retention_days
        batch_size = batch_size or settings.cleanup_batch_size
        cutoff = utcnow() - timedelta(days=retention_days)
        logger.info("Starting cleanup of items deleted before %s", cutoff.isoformat())

        stats = {"found": 0, "deleted": 0, "failed": 0}
        failed_ids = set()
        while True:
            batch = [
                item
                for item in await self.tree.list_soft_deleted_older_than(
                    cutoff, limit=batch_size + len(failed_ids)
                )
                if item.id not in failed_ids
            ][:batch_size]
            if not batch:
                break

            stats["found"] += len(batch)
            for item_id in [item.id for item in batch]:
                if await self._purge_item(item_id):
                    stats["deleted"] += 1
                else:
                    failed_ids.add(item_id)
                    stats["failed"] += 1

            if len(batch) < batch_size:
                break

        logger.info(
            "Cleanup completed: %d found, %d deleted, %d failed",
            stats["found"],
            stats["deleted"],
            stats["failed"],
        )
        return stats

    async def _purge_item(self, item_id: UUID) -> bool:
        # a rollback expires the batch, so reload by id
        item = await self.tree.get(item_id)
        if item is None:
            return True
        item_name = item.name
        try:
            # rows under a purged folder go with it by cascade, so their blobs go too
            for locator in await self.tree.subtree_storage_paths(item):
                self.blob_store.delete(locator)
            await self.tree.hard_delete(item)
            await self.db.commit()
        except (BlobStorageError, SQLAlchemyError, OSError):
            logger.exception("Failed to permanently delete item %s (%s)", item_id, item_name)
            await self.db.rollback()
            return False
        logger.debug("Permanently deleted %s (%s)", item_name, item_id)
        return True
