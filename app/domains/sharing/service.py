"""Sharing service: grant, revoke and list shares."""

import logging
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from app.domains.files.access import AccessControl
from app.domains.files.tree import FileTree
from app.domains.sharing.permissions import PermissionIndex
from app.exceptions.file import SelfShareError, ShareNotFoundError, UserNotFoundError
from app.services.notification_service import ShareNotifier, share_notifier
from models.file_item import FileItem
from models.file_permission import FilePermission, PermissionLevel
from models.user import User

logger = logging.getLogger(__name__)


class SharingService:
    """Service class for sharing business logic."""

    def __init__(self, db: AsyncSession, notifier: ShareNotifier | None = None):
        self.db = db
        self.notifier = notifier or share_notifier
        self.tree = FileTree(db)
        self.access = AccessControl(db)
        self.permissions = PermissionIndex(db)

    async def share(
        self, file_id: UUID, granter: User, recipient_email: str, level: PermissionLevel
    ) -> tuple[FileItem, User, FilePermission]:
        """Share an item (and, for folders, every live descendant) with ``recipient_email``.

        Only the owner or an EDIT sharee may share. Sharing again with the same
        recipient updates the level instead of adding a row.
        """
        item = await self.tree.find_by_id(file_id)
        recipient = await self._get_user_by_email(recipient_email)
        if recipient.id == granter.id:
            raise SelfShareError()
        await self.access.require_write(item, granter)
        granter_email = granter.email

        permission = await self._apply_share(item, recipient, level)

        logger.info(
            "Shared %s with %s at %s (by %s)", item.name, recipient.email, level.value, granter_email
        )
        self.notifier.notify(recipient.email, granter_email, item.name, level.value)
        return item, recipient, permission

    async def revoke(self, file_id: UUID, owner: User, recipient_email: str) -> None:
        """Remove a share from an item and from all its live descendants. Owner only."""
        item = await self.tree.find_by_id(file_id)
        self.access.require_owner(item, owner, "remove shares")
        recipient = await self._get_user_by_email(recipient_email)

        permission = await self.permissions.get(item.id, recipient.id)
        if permission is None:
            raise ShareNotFoundError()

        await self.permissions.delete(permission)
        removed = 0
        if item.is_folder:
            removed = await self.permissions.revoke_recursive(item, recipient)
        await self.db.commit()

        logger.info(
            "Removed share for %s on %s (%d descendant rows)", recipient.email, item.name, removed
        )

    async def list_shares(self, file_id: UUID, requester: User) -> tuple[FileItem, list[FilePermission]]:
        item = await self.tree.find_by_id(file_id)
        self.access.require_owner(item, requester, "view file shares")
        return item, await self.permissions.list_for_item(item)

    async def list_shared_with_me(self, user: User) -> list[tuple[FileItem, PermissionLevel]]:
        return await self.permissions.shared_items_for_user(user)

    @retry(
        retry=retry_if_exception_type(IntegrityError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.05, min=0.05, max=0.5),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _apply_share(
        self, item: FileItem, recipient: User, level: PermissionLevel
    ) -> FilePermission:
        """Upsert the root row and propagate it, as one transaction retried on conflict."""
        try:
            permission = await self.permissions.upsert(item, recipient, level)
            if item.is_folder:
                count = await self.permissions.propagate(item, recipient, level)
                logger.debug("Propagated %s to %d descendants of %s", level.value, count, item.name)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            # rollback expired them; reload before the retry touches attributes
            await self.db.refresh(item)
            await self.db.refresh(recipient)
            raise
        return permission

    async def _get_user_by_email(self, email: str) -> User:
        result = await self.db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()
        if user is None:
            raise UserNotFoundError(f"User with email {email} not found")
        return user
