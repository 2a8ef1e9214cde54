"""Usage analytics API controller."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_user, get_db, validate_token
from app.domains.analytics.service import AnalyticsService
from app.schemas.base import ResponseSchema
from models.user import User

router = APIRouter(
    prefix="/analytics",
    tags=["analytics"],
    dependencies=[Depends(validate_token)],
)


@router.get("/usage", response_model=ResponseSchema)
async def get_usage_stats(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get storage usage and sharing statistics for the current user."""
    service = AnalyticsService(db)
    stats = await service.get_usage_stats(current_user)

    return ResponseSchema(
        status="success",
        message="Usage statistics retrieved successfully",
        data=stats.model_dump(),
    )
