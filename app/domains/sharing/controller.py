"""Sharing API controller with FastAPI endpoints."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_user, get_db, validate_token
from app.domains.sharing.service import SharingService
from app.schemas.base import ItemList, ResponseSchema
from app.schemas.file import SharedItemResponse
from app.schemas.sharing import ShareRequest, ShareResponse
from models.file_permission import PermissionLevel
from models.user import User

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/files",
    tags=["sharing"],
    dependencies=[Depends(validate_token)],
)


# registered before /{file_id} routes so the literal segment wins
@router.get("/shared-with-me", response_model=ResponseSchema)
async def list_shared_with_me(
    _request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List items other users have shared with the current user."""
    service = SharingService(db)
    shared = await service.list_shared_with_me(current_user)

    items = [
        SharedItemResponse(
            id=item.id,
            name=item.name,
            type=item.type,
            size=item.size,
            mime_type=item.mime_type,
            owner_id=item.owner_id,
            permission_level=level.value,
            created_at=item.created_at,
            can_edit=level == PermissionLevel.EDIT,
        ).model_dump()
        for item, level in shared
    ]
    return ResponseSchema(
        status="success",
        message="Shared files retrieved successfully",
        data=ItemList.of(items).model_dump(),
    )


@router.post("/{file_id}/share", response_model=ResponseSchema)
async def share_file(
    _request: Request,
    share_data: ShareRequest,
    file_id: UUID = Path(..., description="File or folder ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Share a file or folder with another user by email."""
    service = SharingService(db)
    item, recipient, permission = await service.share(
        file_id, current_user, str(share_data.email), share_data.permission_level
    )

    return ResponseSchema(
        status="success",
        message=f"{item.name} shared with {recipient.email}",
        data=ShareResponse(
            file_id=item.id,
            user_id=recipient.id,
            email=recipient.email,
            permission_level=permission.permission_level,
            shared_at=permission.shared_at,
        ).model_dump(),
    )


@router.get("/{file_id}/shares", response_model=ResponseSchema)
async def list_shares(
    _request: Request,
    file_id: UUID = Path(..., description="File or folder ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List who an item is shared with. Owner only."""
    service = SharingService(db)
    item, permissions = await service.list_shares(file_id, current_user)

    shares = [
        ShareResponse(
            file_id=item.id,
            user_id=permission.user_id,
            email=permission.user.email,
            permission_level=permission.permission_level,
            shared_at=permission.shared_at,
        ).model_dump()
        for permission in permissions
    ]
    return ResponseSchema(
        status="success",
        message="Shares retrieved successfully",
        data={"shares": shares, "total": len(shares)},
    )


@router.delete("/{file_id}/share/{email}", response_model=ResponseSchema)
async def remove_share(
    _request: Request,
    file_id: UUID = Path(..., description="File or folder ID"),
    email: str = Path(..., description="Email of user to remove"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Revoke a user's access to an item and everything under it."""
    service = SharingService(db)
    await service.revoke(file_id, current_user, email)

    return ResponseSchema(status="success", message="Share removed successfully", data=None)
