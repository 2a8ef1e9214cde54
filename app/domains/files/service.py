"""File service layer: uploads, folders, listing and single-file download."""

import logging
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.domains.files.access import AccessControl
from app.domains.files.tree import FileTree
from app.domains.sharing.permissions import PermissionIndex
from app.exceptions.base import ValidationError
from app.exceptions.file import (
    ArchiveMissingError,
    BlobStorageError,
    InvalidParentError,
    QuotaExceededError,
)
from app.schemas.file import FileListFilter
from app.services.blob_store import LocalBlobStore, get_blob_store
from models.file_item import FileItem, FileType
from models.user import User

logger = logging.getLogger(__name__)


@dataclass
class UploadedFile:
    """An upload already read into memory, independent of the web framework."""

    filename: str
    content_type: str | None
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


class FileService:
    """Service class for file and folder business logic."""

    def __init__(self, db: AsyncSession, blob_store: LocalBlobStore | None = None):
        self.db = db
        self.blob_store = blob_store or get_blob_store()
        self.tree = FileTree(db)
        self.access = AccessControl(db)
        self.permissions = PermissionIndex(db)

    async def upload_files(
        self, files: list[UploadedFile], parent_id: UUID | None, user: User
    ) -> dict[str, Any]:
        """Store each upload and create its FILE node under ``parent_id``."""
        parent = await self._writable_parent(parent_id, user)

        non_empty = [f for f in files if f.size > 0]
        for upload in non_empty:
            if upload.size > settings.max_file_size:
                raise QuotaExceededError(
                    f"File '{upload.filename}' exceeds the maximum size of {settings.max_file_size} bytes"
                )
        requested = sum(f.size for f in non_empty)
        if user.storage_used + requested > user.storage_quota:
            raise QuotaExceededError(
                f"Upload of {requested} bytes exceeds the remaining quota of {user.storage_available} bytes"
            )

        uploaded: list[FileItem] = []
        total_size = 0
        for upload in non_empty:
            try:
                storage_path = self.blob_store.store(upload.data, str(user.id), upload.filename)
            except BlobStorageError:
                logger.exception("Failed to upload file: %s", upload.filename)
                continue

            item = await self.tree.create_file(
                owner=user,
                parent=parent,
                name=upload.filename,
                mime_type=upload.content_type,
                size=upload.size,
                storage_path=storage_path,
            )
            uploaded.append(item)
            total_size += upload.size
            logger.info("File uploaded: %s by user: %s", upload.filename, user.email)

        user.storage_used = user.storage_used + total_size

        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            for item in uploaded:
                self.blob_store.delete(item.storage_path)
            raise ValidationError(f"Failed to save uploaded files: {str(e)}")

        return {
            "files": uploaded,
            "success_count": len(uploaded),
            "total_count": len(files),
        }

    async def create_folder(self, name: str, parent_id: UUID | None, user: User) -> FileItem:
        """Create a folder at the user's root or inside a writable folder."""
        parent = await self._writable_parent(parent_id, user)
        folder = await self.tree.create_folder(user, parent, name)
        await self.db.commit()
        await self.db.refresh(folder)
        return folder

    async def list_files(self, user: User, filters: FileListFilter) -> list[tuple[FileItem, bool]]:
        """List a folder's children, search results, or the root; each with ``can_edit``."""
        if filters.parent_id is not None:
            parent = await self.tree.find_by_id(filters.parent_id)
            await self.access.require_read(parent, user)
            items = await self.tree.list_children(parent)
        elif filters.q:
            items = await self._search(user, filters.q)
        else:
            items = await self.tree.list_root(user)

        if filters.type is not None:
            items = [item for item in items if item.type == filters.type]
        if filters.from_size is not None:
            items = [item for item in items if item.size >= filters.from_size]
        if filters.to_size is not None:
            items = [item for item in items if item.size <= filters.to_size]

        items.sort(key=lambda item: (item.type != FileType.FOLDER, item.name.lower()))
        return [(item, await self.access.can_write(item, user)) for item in items]

    async def get_file_details(self, file_id: UUID, user: User) -> tuple[FileItem, bool]:
        item = await self.tree.find_by_id(file_id)
        await self.access.require_read(item, user)
        return item, await self.access.can_write(item, user)

    async def download_file(self, file_id: UUID, user: User) -> FileItem:
        """Authorize a single-file download and return the item whose blob to stream."""
        item = await self.tree.find_by_id(file_id)
        if not item.is_file:
            raise ValidationError(
                "Only files can be downloaded directly. Use folder download endpoint for folders."
            )
        await self.access.require_read(item, user)
        if not item.storage_path or not self.blob_store.exists(item.storage_path):
            logger.error("Blob missing for file %s (%s)", item.id, item.storage_path)
            raise ArchiveMissingError("File content not found")
        return item

    async def delete_file(self, file_id: UUID, user: User) -> None:
        """Soft-delete a file or folder the user may write."""
        item = await self.tree.find_by_id(file_id)
        await self.access.require_write(item, user)
        await self.tree.soft_delete(item)
        await self.db.commit()
        logger.info("File/Folder soft deleted: %s by user: %s", item.name, user.email)

    async def _search(self, user: User, keyword: str) -> list[FileItem]:
        """Owned matches plus matching items shared with the user, without duplicates."""
        owned = await self.tree.search(user, keyword)
        needle = keyword.lower()
        seen = {item.id for item in owned}
        results = list(owned)
        for item, _level in await self.permissions.shared_items_for_user(user):
            if item.id not in seen and needle in item.name.lower():
                seen.add(item.id)
                results.append(item)
        return results

    async def _writable_parent(self, parent_id: UUID | None, user: User) -> FileItem | None:
        if parent_id is None:
            return None
        parent = await self.tree.find_by_id(parent_id)
        if not parent.is_folder:
            raise InvalidParentError()
        await self.access.require_write(parent, user)
        return parent
