"""Permission index: CRUD over FilePermission rows plus recursive propagation."""

import logging
import uuid
from collections.abc import Iterable, Sequence
from uuid import UUID

from sqlalchemy import and_, delete, func
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from app.domains.files.tree import FileTree
from models.base import utcnow
from models.file_item import FileItem
from models.file_permission import FilePermission, PermissionLevel
from models.user import User

logger = logging.getLogger(__name__)

# keeps multi-row statements under SQLite's bound-parameter limit
WRITE_BATCH_SIZE = 500

_UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def _batched(values: Sequence, size: int = WRITE_BATCH_SIZE) -> Iterable[Sequence]:
    for start in range(0, len(values), size):
        yield values[start:start + size]


class PermissionIndex:
    """Maps (item, user) to a permission level.

    Writes flush through the session but never commit; the caller owns the
    transaction. Upserts are single statements (``INSERT .. ON CONFLICT``)
    where the dialect supports them, so concurrent sharers cannot create
    duplicate rows.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.tree = FileTree(db)

    async def get(self, item_id: UUID, user_id: UUID) -> FilePermission | None:
        stmt = select(FilePermission).where(
            and_(FilePermission.file_item_id == item_id, FilePermission.user_id == user_id)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def upsert(self, item: FileItem, user: User, level: PermissionLevel) -> FilePermission:
        """Grant ``level`` on ``item``, updating an existing row in place."""
        await self._upsert_many([item.id], user.id, level)
        stmt = (
            select(FilePermission)
            .where(
                and_(FilePermission.file_item_id == item.id, FilePermission.user_id == user.id)
            )
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one()

    async def propagate(self, root: FileItem, user: User, level: PermissionLevel) -> int:
        """Set ``level`` for ``user`` on every live descendant of ``root``.

        Existing rows are overwritten. Returns the number of descendants touched.
        """
        descendant_ids = await self.tree.descendant_ids(root)
        await self._upsert_many(descendant_ids, user.id, level)
        return len(descendant_ids)

    async def delete(self, permission: FilePermission) -> None:
        await self.db.delete(permission)
        await self.db.flush()

    async def revoke_recursive(self, root: FileItem, user: User) -> int:
        """Drop ``user``'s rows on every live descendant of ``root``; absent rows are skipped."""
        descendant_ids = await self.tree.descendant_ids(root)
        removed = 0
        for batch in _batched(descendant_ids):
            result = await self.db.execute(
                delete(FilePermission)
                .where(
                    and_(
                        FilePermission.user_id == user.id,
                        FilePermission.file_item_id.in_(batch),
                    )
                )
                .execution_options(synchronize_session=False)
            )
            removed += result.rowcount or 0
        await self.db.flush()
        return removed

    async def list_for_item(self, item: FileItem) -> list[FilePermission]:
        stmt = (
            select(FilePermission)
            .options(selectinload(FilePermission.user))
            .where(FilePermission.file_item_id == item.id)
            .order_by(FilePermission.shared_at)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def shared_items_for_user(self, user: User) -> list[tuple[FileItem, PermissionLevel]]:
        """Live items ``user`` holds a permission row on, with the level."""
        stmt = (
            select(FileItem, FilePermission.permission_level)
            .join(FilePermission, FilePermission.file_item_id == FileItem.id)
            .where(and_(FilePermission.user_id == user.id, FileItem.deleted.is_(False)))
            .order_by(FilePermission.shared_at, FileItem.name)
        )
        result = await self.db.execute(stmt)
        return [(item, level) for item, level in result.all()]

    async def count_for_user(self, user: User) -> int:
        stmt = select(func.count(FilePermission.id)).where(FilePermission.user_id == user.id)
        result = await self.db.execute(stmt)
        return result.scalar() or 0

    async def count_granted_by_owner(self, owner: User) -> int:
        """Permission rows on items ``owner`` owns, held by someone else."""
        stmt = (
            select(func.count(FilePermission.id))
            .join(FileItem, FileItem.id == FilePermission.file_item_id)
            .where(and_(FileItem.owner_id == owner.id, FilePermission.user_id != owner.id))
        )
        result = await self.db.execute(stmt)
        return result.scalar() or 0

    async def _upsert_many(self, item_ids: Sequence[UUID], user_id: UUID, level: PermissionLevel) -> None:
        if not item_ids:
            return
        insert_factory = _UPSERT_INSERTS.get(self.db.get_bind().dialect.name)
        if insert_factory is None:
            await self._upsert_portable(item_ids, user_id, level)
            return

        now = utcnow()
        for batch in _batched(item_ids):
            rows = [
                {
                    "id": uuid.uuid4(),
                    "file_item_id": item_id,
                    "user_id": user_id,
                    "permission_level": level,
                    "shared_at": now,
                    "created_at": now,
                    "updated_at": now,
                }
                for item_id in batch
            ]
            stmt = insert_factory(FilePermission).values(rows)
            stmt = stmt.on_conflict_do_update(
                index_elements=[FilePermission.file_item_id, FilePermission.user_id],
                set_={
                    "permission_level": stmt.excluded.permission_level,
                    "updated_at": stmt.excluded.updated_at,
                },
            )
            await self.db.execute(stmt)

    async def _upsert_portable(self, item_ids: Sequence[UUID], user_id: UUID, level: PermissionLevel) -> None:
        # Read-then-write; a racing insert surfaces as IntegrityError and the
        # sharing service retries the whole unit of work.
        for item_id in item_ids:
            existing = await self.get(item_id, user_id)
            if existing is not None:
                existing.permission_level = level
            else:
                self.db.add(
                    FilePermission(file_item_id=item_id, user_id=user_id, permission_level=level)
                )
        await self.db.flush()
