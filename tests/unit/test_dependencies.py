"""
Unit tests for Dependencies module.

Covers bearer-token validation and resolution of the current user.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import HTTPException, status

from app.core.dependencies import get_current_user, validate_token


def make_request():
    request = MagicMock()
    request.state = MagicMock()
    return request


class TestValidateToken:
    """Test cases for validate_token dependency."""

    @pytest.mark.asyncio
    async def test_validate_token_success(self):
        mock_token = MagicMock()
        mock_token.credentials = "valid_jwt_token"
        payload = {"sub": "auth|alice", "email": "alice@example.com"}

        with patch("app.core.dependencies.auth.verify_token", new=AsyncMock(return_value=payload)) as mock_verify:
            result = await validate_token(mock_token)

        assert result == payload
        mock_verify.assert_awaited_once_with("valid_jwt_token")

    @pytest.mark.asyncio
    async def test_validate_token_none_token(self):
        with pytest.raises(HTTPException) as exc_info:
            await validate_token(None)

        assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED

    @pytest.mark.asyncio
    async def test_validate_token_empty_credentials(self):
        mock_token = MagicMock()
        mock_token.credentials = ""

        with pytest.raises(HTTPException) as exc_info:
            await validate_token(mock_token)

        assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED


class TestGetCurrentUser:
    """Test cases for get_current_user dependency."""

    @pytest.mark.asyncio
    async def test_existing_user(self, test_db, test_user):
        request = make_request()

        user = await get_current_user(request, {"sub": test_user.auth_subject}, test_db)

        assert user.id == test_user.id
        assert request.state.user_id == test_user.id

    @pytest.mark.asyncio
    async def test_first_request_provisions_user(self, test_db):
        user = await get_current_user(
            make_request(), {"sub": "auth|erin", "email": "erin@example.com"}, test_db
        )

        assert user.email == "erin@example.com"

    @pytest.mark.asyncio
    async def test_missing_subject(self, test_db):
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(make_request(), {"email": "x@example.com"}, test_db)

        assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED

    @pytest.mark.asyncio
    async def test_unknown_subject_without_email(self, test_db):
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(make_request(), {"sub": "auth|nobody"}, test_db)

        assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED

    @pytest.mark.asyncio
    async def test_inactive_user(self, test_db, test_user):
        test_user.is_active = False
        await test_db.commit()

        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(make_request(), {"sub": test_user.auth_subject}, test_db)

        assert exc_info.value.status_code == status.HTTP_403_FORBIDDEN
