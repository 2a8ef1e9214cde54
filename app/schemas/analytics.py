"""Usage analytics Pydantic schemas."""

from .base import BaseSchema


class UsageStats(BaseSchema):
    """Storage and sharing counters for one user."""

    storage_used: int
    storage_quota: int
    storage_available: int
    usage_percentage: float
    total_files: int
    total_folders: int
    total_shared_with_me: int
    total_shared_by_me: int
