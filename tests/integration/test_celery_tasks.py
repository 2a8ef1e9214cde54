"""
Integration tests for the Celery tasks.

Tasks are applied eagerly. Each one runs its coroutine under ``asyncio.run``,
so these tests are synchronous and seed their own SQLite database on a
separate event loop.
"""

import asyncio
import io
import zipfile
from contextlib import asynccontextmanager
from datetime import timedelta
from unittest.mock import patch

import pytest
from sqlalchemy import update
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from app.database import enable_sqlite_foreign_keys
from app.services.blob_store import LocalBlobStore
from app.tasks.download_tasks import build_archive_task, reconcile_stuck_downloads_task
from app.tasks.file_tasks import purge_deleted_items_task
from models import Base, DownloadRequest, DownloadStatus, FileItem
from models.base import utcnow
from tests.factories import DownloadRequestFactory, FolderFactory, UserFactory, create_tree


@pytest.fixture
def task_env(tmp_path):
    """Database URL and blob store shared by the seeding code and the tasks."""
    url = f"sqlite+aiosqlite:///{tmp_path / 'tasks.db'}"
    blob_store = LocalBlobStore(tmp_path / "blobs")

    @asynccontextmanager
    async def session_factory():
        engine = create_async_engine(url)
        enable_sqlite_foreign_keys(engine)
        try:
            yield async_sessionmaker(bind=engine, expire_on_commit=False)
        finally:
            await engine.dispose()

    async def create_schema():
        engine = create_async_engine(url)
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        await engine.dispose()

    asyncio.run(create_schema())
    with patch("app.tasks.download_tasks.task_session_factory", session_factory), patch(
        "app.tasks.file_tasks.task_session_factory", session_factory
    ), patch("app.tasks.download_tasks.get_blob_store", return_value=blob_store), patch(
        "app.tasks.file_tasks.get_blob_store", return_value=blob_store
    ):
        yield session_factory, blob_store


def seed(session_factory, builder):
    async def run():
        async with session_factory() as factory:
            async with factory() as db:
                return await builder(db)

    return asyncio.run(run())


class TestArchiveTask:
    def test_builds_archive(self, task_env):
        session_factory, blob_store = task_env

        async def build(db):
            owner = await UserFactory.create_async(db)
            tree = await create_tree(db, blob_store, owner)
            request = await DownloadRequestFactory.create_async(
                db, file_item_id=tree["Docs"].id, user_id=owner.id
            )
            return request.id

        request_pk = seed(session_factory, build)

        result = build_archive_task.apply(args=[str(request_pk)]).get()

        assert result == {"request_pk": str(request_pk), "status": "READY"}

        async def load(db):
            return await db.get(DownloadRequest, request_pk)

        request = seed(session_factory, load)
        with zipfile.ZipFile(io.BytesIO(b"".join(blob_store.load(request.download_path)))) as zf:
            assert "Docs/report.pdf" in zf.namelist()

    def test_unknown_request_is_a_no_op(self, task_env, random_uuid):
        result = build_archive_task.apply(args=[str(random_uuid)]).get()

        assert result["status"] is None


class TestMaintenanceTasks:
    def test_reconcile_stuck_downloads(self, task_env):
        session_factory, _blob_store = task_env

        async def build(db):
            owner = await UserFactory.create_async(db)
            folder = await FolderFactory.create_async(db, owner_id=owner.id)
            stuck = await DownloadRequestFactory.create_async(
                db, file_item_id=folder.id, user_id=owner.id, status=DownloadStatus.PROCESSING
            )
            await db.execute(
                update(DownloadRequest)
                .where(DownloadRequest.id == stuck.id)
                .values(updated_at=utcnow() - timedelta(days=1))
            )
            await db.commit()

        seed(session_factory, build)

        assert reconcile_stuck_downloads_task.apply().get() == {"failed": 1}

    def test_purge_deleted_items(self, task_env):
        session_factory, blob_store = task_env

        async def build(db):
            owner = await UserFactory.create_async(db)
            await FolderFactory.create_async(
                db, owner_id=owner.id, deleted=True, deleted_at=utcnow() - timedelta(days=90)
            )
            await FolderFactory.create_async(db, owner_id=owner.id, deleted=True, deleted_at=utcnow())

        seed(session_factory, build)

        result = purge_deleted_items_task.apply().get()

        assert result == {"found": 1, "deleted": 1, "failed": 0}

        async def remaining(db):
            return len((await db.execute(FileItem.__table__.select())).all())

        assert seed(session_factory, remaining) == 1
