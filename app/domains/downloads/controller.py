"""Folder download API controller."""

import logging
from urllib.parse import quote
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import (
    get_current_user,
    get_db,
    get_dispatcher,
    get_storage,
    validate_token,
)
from app.domains.downloads.service import DownloadService
from app.domains.downloads.workers import ArchiveDispatcher
from app.schemas.base import ResponseSchema
from app.schemas.download import DownloadInitiated
from app.services.blob_store import LocalBlobStore
from models.user import User

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/files",
    tags=["downloads"],
    dependencies=[Depends(validate_token)],
)


@router.post("/{file_id}/download-archive", response_model=ResponseSchema, status_code=202)
async def initiate_folder_download(
    _request: Request,
    file_id: UUID = Path(..., description="Folder ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    dispatcher: ArchiveDispatcher = Depends(get_dispatcher),
    storage: LocalBlobStore = Depends(get_storage),
):
    """Start building a ZIP of a folder in the background."""
    service = DownloadService(db, dispatcher, storage)
    request = await service.initiate(file_id, current_user)

    return ResponseSchema(
        status="success",
        message="Download request created",
        data=DownloadInitiated(request_id=request.request_id, status=request.status).model_dump(),
    )


@router.get("/downloads/{request_id}", response_model=ResponseSchema)
async def get_download_status(
    _request: Request,
    request_id: str = Path(..., max_length=64, description="Download request ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    dispatcher: ArchiveDispatcher = Depends(get_dispatcher),
    storage: LocalBlobStore = Depends(get_storage),
):
    """Poll the state of a folder download."""
    service = DownloadService(db, dispatcher, storage)
    view = await service.get_status(request_id, current_user)

    return ResponseSchema(status="success", message=view.message, data=view.model_dump())


@router.get("/downloads/{request_id}/file")
async def download_archive(
    _request: Request,
    request_id: str = Path(..., max_length=64, description="Download request ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    dispatcher: ArchiveDispatcher = Depends(get_dispatcher),
    storage: LocalBlobStore = Depends(get_storage),
):
    """Stream the finished ZIP archive."""
    service = DownloadService(db, dispatcher, storage)
    archive = await service.get_archive(request_id, current_user)

    return StreamingResponse(
        archive.chunks,
        media_type="application/zip",
        headers={
            "Content-Disposition": f"attachment; filename*=UTF-8''{quote(archive.filename)}",
            "Content-Length": str(archive.size),
        },
    )
