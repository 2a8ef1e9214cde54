"""Unit tests for the retention sweep."""

from datetime import timedelta
from unittest.mock import patch

import pytest

from app.domains.files.cleanup import CleanupService
from app.domains.files.tree import FileTree
from app.exceptions.file import BlobStorageError
from models.base import utcnow
from tests.factories import FolderFactory, create_stored_file


def days_ago(days: int):
    return utcnow() - timedelta(days=days)


async def trash(test_db, item, days: int):
    item.deleted = True
    item.deleted_at = days_ago(days)
    await test_db.commit()


class TestPurgeDeleted:
    """Test cases for CleanupService.purge_deleted."""

    @pytest.mark.asyncio
    async def test_purges_only_items_past_retention(self, test_db, blob_store, test_user):
        old = await create_stored_file(test_db, blob_store, test_user, name="old.txt")
        recent = await create_stored_file(test_db, blob_store, test_user, name="recent.txt")
        live = await create_stored_file(test_db, blob_store, test_user, name="live.txt")
        await trash(test_db, old, 45)
        await trash(test_db, recent, 3)
        old_path = old.storage_path

        stats = await CleanupService(test_db, blob_store).purge_deleted(retention_days=30, batch_size=10)

        assert stats == {"found": 1, "deleted": 1, "failed": 0}
        tree = FileTree(test_db)
        assert await tree.get(old.id) is None
        assert await tree.get(recent.id) is not None
        assert await tree.get(live.id) is not None
        assert not blob_store.exists(old_path)
        assert blob_store.exists(live.storage_path)

    @pytest.mark.asyncio
    async def test_processes_in_batches(self, test_db, blob_store, test_user):
        for n in range(5):
            item = await create_stored_file(test_db, blob_store, test_user, name=f"f{n}.txt")
            await trash(test_db, item, 40)

        stats = await CleanupService(test_db, blob_store).purge_deleted(retention_days=30, batch_size=2)

        assert stats == {"found": 5, "deleted": 5, "failed": 0}

    @pytest.mark.asyncio
    async def test_failed_item_is_skipped(self, test_db, blob_store, test_user):
        bad = await create_stored_file(test_db, blob_store, test_user, name="bad.txt")
        good = await create_stored_file(test_db, blob_store, test_user, name="good.txt")
        await trash(test_db, bad, 40)
        await trash(test_db, good, 40)
        bad_path = bad.storage_path
        original_delete = blob_store.delete

        def flaky_delete(locator):
            if locator == bad_path:
                raise BlobStorageError("disk error")
            original_delete(locator)

        with patch.object(blob_store, "delete", side_effect=flaky_delete):
            stats = await CleanupService(test_db, blob_store).purge_deleted(retention_days=30, batch_size=10)

        assert stats == {"found": 2, "deleted": 1, "failed": 1}
        assert await FileTree(test_db).get(bad.id) is not None

    @pytest.mark.asyncio
    async def test_purging_folder_removes_nested_blobs(self, test_db, blob_store, test_user):
        folder = await FolderFactory.create_async(test_db, name="Old", owner_id=test_user.id)
        child = await create_stored_file(test_db, blob_store, test_user, folder, "child.txt")
        child_path = child.storage_path
        await trash(test_db, folder, 40)

        stats = await CleanupService(test_db, blob_store).purge_deleted(retention_days=30)

        assert stats["deleted"] == 1
        assert not blob_store.exists(child_path)

    @pytest.mark.asyncio
    async def test_quota_is_not_decremented(self, test_db, blob_store, test_user):
        item = await create_stored_file(test_db, blob_store, test_user, name="big.bin", data=b"x" * 100)
        test_user.storage_used = 100
        await trash(test_db, item, 40)

        await CleanupService(test_db, blob_store).purge_deleted(retention_days=30)

        await test_db.refresh(test_user)
        assert test_user.storage_used == 100
