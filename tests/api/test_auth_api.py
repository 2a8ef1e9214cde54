"""API tests for the current-user endpoint."""

import pytest
from fastapi import status
from httpx import AsyncClient

from app.core.security import create_access_token


class TestAuthController:
    """Test cases for /auth/me."""

    @pytest.mark.asyncio
    async def test_me(self, authenticated_client: AsyncClient, test_user):
        response = await authenticated_client.get("/api/v1/auth/me")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["email"] == "alice@example.com"
        assert data["auth_subject"] == test_user.auth_subject
        assert data["storage_used"] == 0

    @pytest.mark.asyncio
    async def test_me_provisions_new_subject(self, client: AsyncClient):
        token = create_access_token("auth|frank", "frank@example.com", extra_claims={"name": "Frank"})

        response = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["full_name"] == "Frank"

    @pytest.mark.asyncio
    async def test_me_unauthenticated(self, client: AsyncClient):
        response = await client.get("/api/v1/auth/me")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    @pytest.mark.asyncio
    async def test_me_invalid_token(self, client: AsyncClient):
        response = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer nonsense"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["status"] == "error"
