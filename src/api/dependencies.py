# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Request-scoped dependencies shared by the v1 routers.

Example:
    @router.post("/decide")
    async def decide_enrollment(
        data: DecideEnrollmentRequest,
        current_user: CurrentUser = Depends(require_auth),
        db: AsyncSession = Depends(get_db),
    ):
        ...
"""

import logging
from typing import AsyncGenerator

from fastapi import HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.middleware.auth import CurrentUser, get_current_user
from src.infrastructure.database.connection import get_session

logger = logging.getLogger(__name__)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """One session per request, committed or rolled back when it ends."""
    async with get_session() as session:
        yield session


def require_auth(request: Request) -> CurrentUser:
    """The caller resolved by ``AuthMiddleware``.

    Raises:
        HTTPException: 401 carrying the middleware's reason, e.g.
            "Token has expired", or "Not authenticated" when no token came.
    """
    user = get_current_user(request)
    if user is not None:
        return user

    reason = getattr(request.state, "auth_error", None) or "Not authenticated"
    logger.debug("401 on %s: %s", request.url.path, reason)
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=reason,
        headers={"WWW-Authenticate": "Bearer"},
    )
