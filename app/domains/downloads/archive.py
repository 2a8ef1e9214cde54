"""Serialize a folder subtree into a ZIP archive."""

import asyncio
import logging
import threading
import zipfile
from dataclasses import dataclass, field
from typing import BinaryIO

from app.domains.files.tree import FileTree
from app.services.blob_store import CHUNK_SIZE, LocalBlobStore
from models.file_item import FileItem

logger = logging.getLogger(__name__)


class ArchiveCancelledError(Exception):
    """The archive write was stopped before it finished."""


@dataclass(frozen=True)
class ArchiveEntry:
    """One ZIP member: a directory when ``storage_path`` is None and ``is_dir``."""

    path: str
    is_dir: bool
    storage_path: str | None = None


@dataclass
class ArchiveSummary:
    file_count: int = 0
    folder_count: int = 0
    skipped: list[str] = field(default_factory=list)


def _check_cancelled(cancel_event: threading.Event) -> None:
    if cancel_event.is_set():
        raise ArchiveCancelledError("Archive write was cancelled")


def _entry_name(name: str) -> str:
    # item names become single path segments
    return name.replace("/", "_").replace("\\", "_")


class ArchiveBuilder:
    """Walks a folder with the file tree and writes its live contents to a ZIP sink.

    Entries are ``<root>/<child>/...``; the root gets no directory entry of
    its own. A file whose blob is missing is left out of the archive rather
    than failing the whole build.
    """

    def __init__(self, tree: FileTree, blob_store: LocalBlobStore):
        self.tree = tree
        self.blob_store = blob_store

    async def collect_entries(self, root: FileItem) -> list[ArchiveEntry]:
        """Pre-order listing of the subtree under ``root`` as archive entries."""
        root_path = _entry_name(root.name)
        entries: list[ArchiveEntry] = []
        stack = [
            (child, f"{root_path}/{_entry_name(child.name)}")
            for child in reversed(await self.tree.list_children(root))
        ]
        while stack:
            item, path = stack.pop()
            if item.is_folder:
                entries.append(ArchiveEntry(path=path, is_dir=True))
                children = await self.tree.list_children(item)
                stack.extend((child, f"{path}/{_entry_name(child.name)}") for child in reversed(children))
            else:
                entries.append(ArchiveEntry(path=path, is_dir=False, storage_path=item.storage_path))
        return entries

    def write(
        self,
        entries: list[ArchiveEntry],
        sink: BinaryIO,
        cancel_event: threading.Event | None = None,
    ) -> ArchiveSummary:
        """Blocking ZIP writer; streams each blob into its entry.

        ``cancel_event`` is checked before every entry and every chunk; once
        set, the write stops with ``ArchiveCancelledError``.
        """
        cancel_event = cancel_event or threading.Event()
        summary = ArchiveSummary()
        with zipfile.ZipFile(sink, mode="w", compression=zipfile.ZIP_DEFLATED) as archive:
            for entry in entries:
                _check_cancelled(cancel_event)
                if entry.is_dir:
                    archive.writestr(f"{entry.path}/", b"")
                    summary.folder_count += 1
                    continue

                if not entry.storage_path or not self.blob_store.exists(entry.storage_path):
                    logger.warning("Skipping %s: blob %s is missing", entry.path, entry.storage_path)
                    summary.skipped.append(entry.path)
                    continue

                with self.blob_store.open_stream(entry.storage_path) as src, archive.open(
                    entry.path, mode="w", force_zip64=True
                ) as dest:
                    while chunk := src.read(CHUNK_SIZE):
                        _check_cancelled(cancel_event)
                        dest.write(chunk)
                summary.file_count += 1
        return summary

    async def build(self, root: FileItem, sink: BinaryIO) -> ArchiveSummary:
        """Collect the subtree, then write the archive on a worker thread.

        If the caller is cancelled (including by a timeout), the writer thread
        is told to stop and awaited before the cancellation propagates, so the
        sink is never released while the thread still writes to it.
        """
        entries = await self.collect_entries(root)
        cancel_event = threading.Event()
        writer = asyncio.ensure_future(asyncio.to_thread(self.write, entries, sink, cancel_event))
        try:
            summary = await asyncio.shield(writer)
        except asyncio.CancelledError:
            cancel_event.set()
            await asyncio.wait({writer})
            if not writer.cancelled() and writer.exception() is not None:
                error = writer.exception()
                if not isinstance(error, ArchiveCancelledError):
                    logger.error("Archive writer for %s failed while stopping: %s", root.name, error)
            raise
        logger.info(
            "Archived %s: %d files, %d folders, %d skipped",
            root.name,
            summary.file_count,
            summary.folder_count,
            len(summary.skipped),
        )
        return summary
