# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""slowapi limiter for the check-in endpoints.

Only decorated routes are counted. Buckets are per authenticated user,
falling back to the client address for anonymous calls. Both check-in routes
share one bucket per caller whatever session or seminar the path names.
Counters are kept in Redis unless ``RATE_LIMIT_STORAGE_URI`` says otherwise.

Example:
    @router.put("/{session_id}/credential:verify")
    @limiter.shared_limit(check_in_limit, scope=CHECK_IN_SCOPE)
    async def verify_credential(request: Request, ...):
        ...
"""

import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from src.core.config import get_settings

logger = logging.getLogger(__name__)

RETRY_AFTER_SECONDS = 60
CHECK_IN_SCOPE = "check_in"


def get_client_identifier(request: Request) -> str:
    """Bucket key: ``user:<id>`` when authenticated, else ``ip:<address>``."""
    user = getattr(request.state, "user", None)
    return f"user:{user.id}" if user else f"ip:{get_remote_address(request)}"


def check_in_limit() -> str:
    # Evaluated per request so ATTENDANCE_CHECK_IN_RATE_LIMIT changes apply
    return get_settings().attendance.check_in_rate_limit


def _build_limiter() -> Limiter:
    settings = get_settings()
    return Limiter(
        key_func=get_client_identifier,
        default_limits=[f"{settings.rate_limit.requests_per_minute}/minute"],
        storage_uri=settings.rate_limit.storage_uri or settings.redis.url,
    )


limiter = _build_limiter()


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 with the ``{code, message}`` detail used by every API error."""
    logger.warning("Rate limit %s hit by %s", exc.detail, get_client_identifier(request))
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={
            "detail": {
                "code": "rate_limited",
                "message": "Too many requests. Please try again later.",
            }
        },
        headers={"Retry-After": str(RETRY_AFTER_SECONDS)},
    )
