"""File and folder API controller with FastAPI endpoints."""

import logging
from urllib.parse import quote
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Path, Query, Request, UploadFile
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_user, get_db, get_storage, validate_token
from app.domains.files.service import FileService, UploadedFile
from app.schemas.base import ItemList, ResponseSchema
from app.schemas.file import FileItemResponse, FileListFilter, FolderCreate
from app.services.blob_store import LocalBlobStore
from models.file_item import FileItem, FileType
from models.user import User

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/files",
    tags=["files"],
    dependencies=[Depends(validate_token)],
)


def serialize_item(item: FileItem, can_edit: bool) -> dict:
    return FileItemResponse.model_validate(item).model_copy(update={"can_edit": can_edit}).model_dump()


def content_disposition(filename: str) -> str:
    return f"attachment; filename*=UTF-8''{quote(filename)}"


@router.post("/upload", response_model=ResponseSchema, status_code=201)
async def upload_files(
    _request: Request,
    files: list[UploadFile] = File(..., description="Files to upload"),
    parent_id: UUID | None = Form(None, description="Parent folder ID (optional)"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: LocalBlobStore = Depends(get_storage),
):
    """Upload one or more files to the root or into a folder."""
    uploads = [
        UploadedFile(
            filename=upload.filename or "unnamed",
            content_type=upload.content_type,
            data=await upload.read(),
        )
        for upload in files
    ]

    service = FileService(db, storage)
    result = await service.upload_files(uploads, parent_id, current_user)

    return ResponseSchema(
        status="success",
        message=f"Uploaded {result['success_count']} of {result['total_count']} files",
        data={
            "files": [serialize_item(item, True) for item in result["files"]],
            "success_count": result["success_count"],
            "total_count": result["total_count"],
        },
    )


@router.post("/folders", response_model=ResponseSchema, status_code=201)
async def create_folder(
    _request: Request,
    folder_data: FolderCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: LocalBlobStore = Depends(get_storage),
):
    """Create a new folder."""
    service = FileService(db, storage)
    folder = await service.create_folder(folder_data.name, folder_data.parent_id, current_user)

    return ResponseSchema(
        status="success",
        message="Folder created successfully",
        data=serialize_item(folder, True),
    )


@router.get("", response_model=ResponseSchema)
async def list_files(
    _request: Request,
    parent_id: UUID | None = Query(None, description="Parent folder ID to list contents"),
    q: str | None = Query(None, max_length=255, description="Search keyword"),
    type: FileType | None = Query(None, description="Filter by type: FILE or FOLDER"),
    from_size: int | None = Query(None, ge=0, description="Minimum file size in bytes"),
    to_size: int | None = Query(None, ge=0, description="Maximum file size in bytes"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: LocalBlobStore = Depends(get_storage),
):
    """List the root, a folder's contents, or search results."""
    filters = FileListFilter(
        parent_id=parent_id, q=q, type=type, from_size=from_size, to_size=to_size
    )

    service = FileService(db, storage)
    items = await service.list_files(current_user, filters)

    return ResponseSchema(
        status="success",
        message="Files retrieved successfully",
        data=ItemList.of([serialize_item(item, can_edit) for item, can_edit in items]).model_dump(),
    )


@router.get("/{file_id}", response_model=ResponseSchema)
async def get_file(
    _request: Request,
    file_id: UUID = Path(..., description="File or folder ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: LocalBlobStore = Depends(get_storage),
):
    """Get details of a file or folder."""
    service = FileService(db, storage)
    item, can_edit = await service.get_file_details(file_id, current_user)

    return ResponseSchema(
        status="success",
        message="File retrieved successfully",
        data=serialize_item(item, can_edit),
    )


@router.get("/{file_id}/download")
async def download_file(
    _request: Request,
    file_id: UUID = Path(..., description="File ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: LocalBlobStore = Depends(get_storage),
):
    """Stream a single file's content."""
    service = FileService(db, storage)
    item = await service.download_file(file_id, current_user)

    return StreamingResponse(
        storage.load(item.storage_path),
        media_type=item.mime_type or "application/octet-stream",
        headers={
            "Content-Disposition": content_disposition(item.name),
            "Content-Length": str(storage.size(item.storage_path)),
        },
    )


@router.delete("/{file_id}", response_model=ResponseSchema)
async def delete_file(
    _request: Request,
    file_id: UUID = Path(..., description="File or folder ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: LocalBlobStore = Depends(get_storage),
):
    """Move a file or folder to the trash."""
    service = FileService(db, storage)
    await service.delete_file(file_id, current_user)

    return ResponseSchema(status="success", message="File deleted successfully", data=None)
