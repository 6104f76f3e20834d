# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for bearer token verification."""

from uuid import uuid4

import pytest
from jose import jwt

from src.core.config.settings import JWTSettings
from src.domains.auth.jwt import InvalidTokenError, JWTManager, TokenExpiredError, TokenPayload

SECRET = "unit-test-signing-secret"


@pytest.fixture
def manager() -> JWTManager:
    return JWTManager(JWTSettings(secret_key=SECRET, access_token_expire_minutes=30))  # type: ignore[arg-type]


class TestDecodeToken:
    """Tests for JWTManager.decode_token."""

    def test_claims_survive_signing(self, manager: JWTManager) -> None:
        """Test minted role and email come back on the payload."""
        member = str(uuid4())

        claims = manager.decode_token(
            manager.create_access_token(member, role="member", email="member@example.com")
        )

        assert isinstance(claims, TokenPayload)
        assert (claims.sub, claims.role, claims.email) == (member, "member", "member@example.com")
        assert claims.jti
        assert claims.exp - claims.iat == 30 * 60

    def test_expired(self, manager: JWTManager) -> None:
        token = manager.create_access_token(str(uuid4()), expires_minutes=-1)

        with pytest.raises(TokenExpiredError, match="Token has expired"):
            manager.decode_token(token)

    @pytest.mark.parametrize("token", ["not-a-jwt", "a.b.c", ""])
    def test_malformed(self, manager: JWTManager, token: str) -> None:
        with pytest.raises(InvalidTokenError):
            manager.decode_token(token)

    def test_signed_by_another_secret(self, manager: JWTManager) -> None:
        """Test tokens signed with a different secret are refused."""
        foreign = JWTManager(JWTSettings(secret_key="someone-else"))  # type: ignore[arg-type]

        with pytest.raises(InvalidTokenError):
            manager.decode_token(foreign.create_access_token(str(uuid4())))

    def test_missing_subject(self, manager: JWTManager) -> None:
        """Test a correctly signed token lacking ``sub`` is refused."""
        token = jwt.encode({"exp": 4102444800}, SECRET, algorithm="HS256")

        with pytest.raises(InvalidTokenError, match="missing required claims"):
            manager.decode_token(token)

    def test_optional_claims_default_to_none(self, manager: JWTManager) -> None:
        token = jwt.encode({"sub": "user-1", "exp": 4102444800}, SECRET, algorithm="HS256")

        claims = manager.decode_token(token)

        assert claims.role is None
        assert claims.email is None
