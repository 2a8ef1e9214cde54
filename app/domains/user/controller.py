"""User account controller endpoints."""

from fastapi import APIRouter, Depends

from app.core.dependencies import get_current_user, validate_token
from app.schemas.base import ResponseSchema
from app.schemas.user import UserResponse
from models.user import User

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
    dependencies=[Depends(validate_token)],
)


@router.get("/me", response_model=ResponseSchema)
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Get current user information."""
    return ResponseSchema(
        status="success",
        message="User retrieved successfully",
        data=UserResponse.model_validate(current_user).model_dump(),
    )
