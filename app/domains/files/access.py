"""Read/write authorization for file items."""

from sqlalchemy import and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.exceptions.file import FilePermissionError
from models.file_item import FileItem
from models.file_permission import FilePermission, PermissionLevel
from models.user import User


class AccessControl:
    """Single authority for "can user U read/write item I".

    The owner can always read and write. Any share grants read; only an
    EDIT share grants write.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def is_owner(item: FileItem, user: User) -> bool:
        return item.owner_id == user.id

    async def permission_for(self, item: FileItem, user: User) -> PermissionLevel | None:
        stmt = select(FilePermission.permission_level).where(
            and_(FilePermission.file_item_id == item.id, FilePermission.user_id == user.id)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def can_read(self, item: FileItem, user: User) -> bool:
        if self.is_owner(item, user):
            return True
        return await self.permission_for(item, user) is not None

    async def can_write(self, item: FileItem, user: User) -> bool:
        if self.is_owner(item, user):
            return True
        return await self.permission_for(item, user) == PermissionLevel.EDIT

    async def require_read(self, item: FileItem, user: User) -> None:
        if not await self.can_read(item, user):
            raise FilePermissionError("You don't have permission to access this resource")

    async def require_write(self, item: FileItem, user: User) -> None:
        if self.is_owner(item, user):
            return
        level = await self.permission_for(item, user)
        if level is None:
            raise FilePermissionError("You don't have permission to modify this resource")
        if level != PermissionLevel.EDIT:
            raise FilePermissionError("You don't have write permission for this resource")

    def require_owner(self, item: FileItem, user: User, action: str = "perform this action") -> None:
        if not self.is_owner(item, user):
            raise FilePermissionError(f"Only the owner can {action}")
