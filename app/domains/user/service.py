# app/domains/user/service.py
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from models import User


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_subject(self, auth_subject: str) -> Optional[User]:
        """Get a user by the auth provider's subject id."""
        result = await self.db.execute(select(User).where(User.auth_subject == auth_subject))
        return result.scalar_one_or_none()

    async def get_user_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def get_user_by_id(self, user_id: UUID) -> Optional[User]:
        """Get a user by ID."""
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def create_user(self, auth_subject: str, email: str, full_name: str = None) -> User:
        """Create a new user with the default storage quota."""
        user = User(
            auth_subject=auth_subject,
            email=email,
            full_name=full_name,
            storage_used=0,
            storage_quota=settings.default_storage_quota,
        )

        try:
            self.db.add(user)
            await self.db.commit()
            await self.db.refresh(user)
            return user
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise e

    async def get_or_create_user(self, auth_subject: str, payload: dict) -> User:
        """Get existing user or provision one from the token payload."""
        user = await self.get_user_by_subject(auth_subject)
        if user:
            return user

        email = payload.get("email")
        if not email:
            raise ValueError("Token payload has no email claim")
        try:
            return await self.create_user(
                auth_subject=auth_subject, email=email, full_name=payload.get("name")
            )
        except IntegrityError:
            # a concurrent first request provisioned the same subject
            user = await self.get_user_by_subject(auth_subject)
            if user is None:
                raise
            return user
