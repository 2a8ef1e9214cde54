"""Structural operations over an owner's file/folder tree."""

import logging
from collections.abc import AsyncIterator
from datetime import datetime
from uuid import UUID

from sqlalchemy import and_, delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.exceptions.file import (
    FileItemNotFoundError,
    FolderNameConflictError,
    InvalidParentError,
)
from models.base import utcnow
from models.file_item import FileItem, FileType
from models.file_permission import FilePermission
from models.user import User

logger = logging.getLogger(__name__)


class FileTree:
    """Creates, lists and deletes FileItem nodes.

    No authorization happens here; callers check access first. Mutating
    methods flush but do not commit, so the caller owns the transaction.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, item_id: UUID) -> FileItem | None:
        return await self.db.get(FileItem, item_id)

    async def find_by_id(self, item_id: UUID) -> FileItem:
        item = await self.get(item_id)
        if item is None:
            raise FileItemNotFoundError()
        return item

    async def create_folder(self, owner: User, parent: FileItem | None, name: str) -> FileItem:
        """Create a folder; live sibling folders must not share its name."""
        self._check_parent(parent)
        parent_id = parent.id if parent else None

        if await self._live_folder_exists(owner.id, parent_id, name):
            raise FolderNameConflictError()

        folder = FileItem(
            name=name,
            type=FileType.FOLDER,
            size=0,
            owner_id=owner.id,
            parent_id=parent_id,
            deleted=False,
        )
        self.db.add(folder)
        try:
            await self.db.flush()
        except IntegrityError as e:
            # a concurrent writer won the race for the same name
            await self.db.rollback()
            raise FolderNameConflictError() from e

        logger.info("Folder created: %s by user: %s", name, owner.email)
        return folder

    async def create_file(
        self,
        owner: User,
        parent: FileItem | None,
        name: str,
        mime_type: str | None,
        size: int,
        storage_path: str,
    ) -> FileItem:
        """Create a file node. Duplicate file names under one parent are allowed."""
        self._check_parent(parent)
        item = FileItem(
            name=name,
            type=FileType.FILE,
            size=size,
            mime_type=mime_type,
            storage_path=storage_path,
            owner_id=owner.id,
            parent_id=parent.id if parent else None,
            deleted=False,
        )
        self.db.add(item)
        await self.db.flush()
        return item

    async def list_children(self, parent: FileItem) -> list[FileItem]:
        stmt = select(FileItem).where(
            and_(FileItem.parent_id == parent.id, FileItem.deleted.is_(False))
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_root(self, owner: User) -> list[FileItem]:
        stmt = select(FileItem).where(
            and_(
                FileItem.owner_id == owner.id,
                FileItem.parent_id.is_(None),
                FileItem.deleted.is_(False),
            )
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def soft_delete(self, item: FileItem) -> None:
        """Mark ``item`` deleted. Children are left untouched."""
        item.deleted = True
        item.deleted_at = utcnow()
        await self.db.flush()

    async def search(self, owner: User, keyword: str) -> list[FileItem]:
        """Case-insensitive substring match on names of the owner's live items."""
        pattern = f"%{keyword.lower()}%"
        stmt = select(FileItem).where(
            and_(
                FileItem.owner_id == owner.id,
                FileItem.deleted.is_(False),
                func.lower(FileItem.name).like(pattern),
            )
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def iter_descendants(self, root: FileItem) -> AsyncIterator[FileItem]:
        """Yield every live descendant of ``root`` in pre-order.

        Uses an explicit stack so arbitrarily deep trees do not grow the call
        stack. Deleted folders are never entered.
        """
        seen: set[UUID] = {root.id}
        # reversed so the first child is popped first
        stack: list[FileItem] = list(reversed(await self.list_children(root)))
        while stack:
            item = stack.pop()
            if item.id in seen:
                continue
            seen.add(item.id)
            yield item
            if item.is_folder:
                stack.extend(reversed(await self.list_children(item)))

    async def descendant_ids(self, root: FileItem) -> list[UUID]:
        return [item.id async for item in self.iter_descendants(root)]

    async def list_soft_deleted_older_than(
        self, cutoff: datetime, limit: int | None = None
    ) -> list[FileItem]:
        stmt = (
            select(FileItem)
            .where(and_(FileItem.deleted.is_(True), FileItem.deleted_at < cutoff))
            .order_by(FileItem.deleted_at)
        )
        if limit:
            stmt = stmt.limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def subtree_storage_paths(self, root: FileItem) -> list[str]:
        """Blob locators of every file under ``root``, deleted or not, plus its own."""
        paths = [root.storage_path] if root.storage_path else []
        frontier = [root.id] if root.is_folder else []
        while frontier:
            result = await self.db.execute(
                select(FileItem.id, FileItem.type, FileItem.storage_path).where(
                    FileItem.parent_id.in_(frontier)
                )
            )
            frontier = []
            for item_id, item_type, storage_path in result.all():
                if item_type == FileType.FOLDER:
                    frontier.append(item_id)
                elif storage_path:
                    paths.append(storage_path)
        return paths

    async def hard_delete(self, item: FileItem) -> None:
        """Remove the row. Children and permission rows go with it via FK cascade."""
        await self.db.execute(delete(FilePermission).where(FilePermission.file_item_id == item.id))
        await self.db.execute(delete(FileItem).where(FileItem.id == item.id))
        self.db.expunge(item)

    async def count_owned(self, owner: User, item_type: FileType) -> int:
        stmt = select(func.count(FileItem.id)).where(
            and_(
                FileItem.owner_id == owner.id,
                FileItem.type == item_type,
                FileItem.deleted.is_(False),
            )
        )
        result = await self.db.execute(stmt)
        return result.scalar() or 0

    async def _live_folder_exists(self, owner_id: UUID, parent_id: UUID | None, name: str) -> bool:
        parent_clause = (
            FileItem.parent_id.is_(None) if parent_id is None else FileItem.parent_id == parent_id
        )
        stmt = select(FileItem.id).where(
            and_(
                FileItem.owner_id == owner_id,
                parent_clause,
                FileItem.name == name,
                FileItem.type == FileType.FOLDER,
                FileItem.deleted.is_(False),
            )
        ).limit(1)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none() is not None

    @staticmethod
    def _check_parent(parent: FileItem | None) -> None:
        if parent is not None and not parent.is_folder:
            raise InvalidParentError()
