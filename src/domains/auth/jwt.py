# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Bearer token handling with python-jose.

The identity provider signs HS256 tokens with the shared secret. ``sub``
is the user id; ``role`` and ``email`` ride along for logs only, since
permission checks read the role from the users table.

Example:
    >>> manager = JWTManager(get_settings().jwt)
    >>> claims = manager.decode_token(manager.create_access_token("user-1"))
    >>> claims.sub
    'user-1'
"""

import logging
import secrets
from datetime import timedelta
from uuid import UUID

from jose import ExpiredSignatureError, JWTError as JoseError, jwt
from pydantic import BaseModel, ValidationError

from src.core.config.settings import JWTSettings
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class TokenPayload(BaseModel):
    """Claims of a verified token."""

    sub: str
    exp: int
    role: str | None = None
    email: str | None = None
    iat: int | None = None
    jti: str | None = None


class JWTError(Exception):
    """A bearer token could not be accepted."""


class TokenExpiredError(JWTError):
    pass


class InvalidTokenError(JWTError):
    pass


class JWTManager:
    """Signs and verifies access tokens with the configured secret."""

    def __init__(self, settings: JWTSettings) -> None:
        self._settings = settings

    @property
    def _key(self) -> str:
        return self._settings.secret_key.get_secret_value()

    def create_access_token(
        self,
        user_id: str | UUID,
        role: str | None = None,
        email: str | None = None,
        expires_minutes: int | None = None,
    ) -> str:
        """Mint a token for local tooling and tests.

        Args:
            user_id: Becomes the ``sub`` claim.
            role: Optional ``role`` claim.
            email: Optional ``email`` claim.
            expires_minutes: Lifetime; negative values mint an already
                expired token. Defaults to the configured lifetime.
        """
        if expires_minutes is None:
            expires_minutes = self._settings.access_token_expire_minutes
        issued = utc_now()

        claims = {
            "sub": str(user_id),
            "role": role,
            "email": email,
            "iat": int(issued.timestamp()),
            "exp": int((issued + timedelta(minutes=expires_minutes)).timestamp()),
            "jti": secrets.token_urlsafe(16),
        }
        return jwt.encode(claims, self._key, algorithm=self._settings.algorithm)

    def decode_token(self, token: str) -> TokenPayload:
        """Verify the signature and expiry of ``token``.

        Raises:
            TokenExpiredError: The ``exp`` claim has passed.
            InvalidTokenError: Bad signature, malformed token or missing ``sub``/``exp``.
        """
        try:
            claims = jwt.decode(
                token,
                self._key,
                algorithms=[self._settings.algorithm],
                options={"verify_aud": False},
            )
        except ExpiredSignatureError as e:
            raise TokenExpiredError("Token has expired") from e
        except JoseError as e:
            logger.warning("Rejected bearer token: %s", e)
            raise InvalidTokenError(f"Invalid token: {e}") from e

        if not claims.get("sub"):
            raise InvalidTokenError("Token is missing required claims")
        try:
            return TokenPayload.model_validate(claims)
        except ValidationError as e:
            raise InvalidTokenError("Token is missing required claims") from e
