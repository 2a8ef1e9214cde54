"""Local filesystem blob store.

Blobs are addressed by opaque locators of the form ``<scope>/<name>`` relative
to the storage root. The database only ever stores locators, never absolute
paths.
"""

import logging
import os
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO

from app.core.config import settings
from app.exceptions.file import BlobStorageError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


class LocalBlobStore:
    """Stores raw bytes under a root directory, one sub-directory per scope."""

    def __init__(self, root: str | os.PathLike | None = None):
        self.root = Path(root or settings.storage_location).resolve()
        self.root.mkdir(parents=True, exist_ok=True)

    def _resolve(self, locator: str) -> Path:
        if not locator or ".." in Path(locator).parts:
            raise BlobStorageError(f"Invalid storage path: {locator!r}")
        path = (self.root / locator).resolve()
        if self.root != path and self.root not in path.parents:
            raise BlobStorageError(f"Invalid storage path: {locator!r}")
        return path

    @staticmethod
    def _new_name(filename: str | None) -> str:
        suffix = Path(filename).suffix if filename else ""
        return f"{uuid.uuid4()}{suffix}"

    def store(self, data: bytes, scope_key: str, filename: str | None = None) -> str:
        """Write ``data`` under ``scope_key`` and return its locator."""
        if filename and ".." in filename:
            raise BlobStorageError(f"Filename contains invalid path sequence: {filename}")
        locator = f"{scope_key}/{self._new_name(filename)}"
        path = self._resolve(locator)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            raise BlobStorageError(f"Could not store file {filename or locator}") from e
        logger.debug("Stored blob %s (%d bytes)", locator, len(data))
        return locator

    @contextmanager
    def open_sink(self, scope_key: str, filename: str | None = None) -> Iterator[tuple[str, BinaryIO]]:
        """Yield ``(locator, writable file)``; the partial blob is removed if the block raises."""
        locator = f"{scope_key}/{self._new_name(filename)}"
        path = self._resolve(locator)
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with path.open("wb") as fh:
                yield locator, fh
        except BaseException:
            path.unlink(missing_ok=True)
            raise

    def open_stream(self, locator: str) -> BinaryIO:
        path = self._resolve(locator)
        try:
            return path.open("rb")
        except FileNotFoundError as e:
            raise BlobStorageError(f"File not found: {locator}") from e

    def load(self, locator: str) -> Iterator[bytes]:
        """Iterate over the blob's bytes in chunks."""
        with self.open_stream(locator) as fh:
            while chunk := fh.read(CHUNK_SIZE):
                yield chunk

    def delete(self, locator: str) -> None:
        """Remove a blob; deleting an absent blob is not an error."""
        path = self._resolve(locator)
        path.unlink(missing_ok=True)
        logger.debug("Deleted blob %s", locator)

    def exists(self, locator: str) -> bool:
        try:
            return self._resolve(locator).is_file()
        except BlobStorageError:
            return False

    def size(self, locator: str) -> int:
        try:
            return self._resolve(locator).stat().st_size
        except OSError:
            return 0


_blob_store: LocalBlobStore | None = None


def get_blob_store() -> LocalBlobStore:
    """Process-wide blob store rooted at ``settings.storage_location``."""
    global _blob_store
    if _blob_store is None:
        _blob_store = LocalBlobStore()
    return _blob_store
