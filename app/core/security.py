"""Security related functions."""

from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from fastapi import HTTPException, status
from jwt import InvalidTokenError

from app.core.config import settings


class TokenAuthenticator:
    """
    Verifies bearer tokens issued by the identity provider.

    Tokens are HS256 JWTs signed with ``settings.secret_key``. The ``sub``
    claim identifies the user and ``email`` is used to provision the local
    user record on first sight.

    :ivar secret_key: The key used to verify JWT signatures.
    :type secret_key: str
    :ivar algorithm: The JWT signing algorithm.
    :type algorithm: str
    """

    def __init__(self, secret_key: str | None = None, algorithm: str | None = None):
        self.secret_key = secret_key or settings.secret_key
        self.algorithm = algorithm or settings.algorithm

    async def verify_token(self, token: str) -> dict:
        """
        Decodes and validates a JWT. Signature and expiry are both checked.

        :param token: The JWT token to be verified.
        :return: The decoded payload.
        :raises HTTPException: 401 if the token is invalid or expired.
        """
        try:
            return jwt.decode(
                token,
                key=self.secret_key,
                algorithms=[self.algorithm],
                options={"require": ["sub", "exp"], "verify_aud": False},
            )
        except InvalidTokenError as e:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=f"Invalid authentication token: {str(e)}",
                headers={"WWW-Authenticate": "Bearer"},
            )


def create_access_token(
    subject: str,
    email: str,
    expires_delta: timedelta | None = None,
    extra_claims: dict[str, Any] | None = None,
) -> str:
    """Issue a signed access token for ``subject``."""
    now = datetime.now(UTC)
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    payload = {"sub": subject, "email": email, "iat": now, "exp": expire}
    if extra_claims:
        payload.update(extra_claims)
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)
