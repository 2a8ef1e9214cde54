"""Usage analytics service."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.domains.files.tree import FileTree
from app.domains.sharing.permissions import PermissionIndex
from app.schemas.analytics import UsageStats
from models.file_item import FileType
from models.user import User

logger = logging.getLogger(__name__)


class AnalyticsService:
    """Service class for per-user storage and sharing statistics."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.tree = FileTree(db)
        self.permissions = PermissionIndex(db)

    async def get_usage_stats(self, user: User) -> UsageStats:
        """Storage usage plus counts of owned and shared items."""
        storage_used = user.storage_used or 0
        storage_quota = user.storage_quota or 0
        usage_percentage = round(storage_used / storage_quota * 100, 2) if storage_quota > 0 else 0.0

        stats = UsageStats(
            storage_used=storage_used,
            storage_quota=storage_quota,
            storage_available=user.storage_available,
            usage_percentage=usage_percentage,
            total_files=await self.tree.count_owned(user, FileType.FILE),
            total_folders=await self.tree.count_owned(user, FileType.FOLDER),
            total_shared_with_me=await self.permissions.count_for_user(user),
            total_shared_by_me=await self.permissions.count_granted_by_owner(user),
        )
        logger.debug("Usage stats for %s: %s", user.email, stats.model_dump())
        return stats
