# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Translation of domain errors into HTTP responses."""

import logging

from fastapi import HTTPException, Request, status
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from src.domains.errors import SeminarServiceError
from src.infrastructure.database.connection import DatabaseError

logger = logging.getLogger(__name__)

STATUS_BY_CODE = {
    "bad_request": status.HTTP_400_BAD_REQUEST,
    "invalid_code": status.HTTP_400_BAD_REQUEST,
    "expired": status.HTTP_400_BAD_REQUEST,
    "not_enrolled": status.HTTP_400_BAD_REQUEST,
    "permission_denied": status.HTTP_403_FORBIDDEN,
    "not_found": status.HTTP_404_NOT_FOUND,
    "conflict": status.HTTP_409_CONFLICT,
}

INTERNAL_ERROR = {"code": "internal", "message": "Internal server error"}


def to_http_exception(error: SeminarServiceError) -> HTTPException:
    """Map a domain error to an HTTPException with a ``{code, message}`` detail.

    Args:
        error: Domain error.

    Returns:
        HTTPException to raise from the endpoint.
    """
    status_code = STATUS_BY_CODE.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR)
    if status_code >= 500:
        logger.error("Unmapped domain error: %s", error.message)
        return HTTPException(status_code=status_code, detail=INTERNAL_ERROR)
    return HTTPException(status_code=status_code, detail=error.to_dict())


async def database_error_handler(request: Request, exc: DatabaseError) -> JSONResponse:
    """Hide store failures behind a generic 500."""
    logger.error(
        "Database error on %s %s: %s",
        request.method,
        request.url.path,
        exc.message,
        exc_info=exc.original_error or exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": INTERNAL_ERROR},
    )


async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Same as ``database_error_handler`` for errors not yet wrapped."""
    return await database_error_handler(request, DatabaseError("Database operation failed", exc))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """400 ``bad_request`` for malformed path ids, FastAPI's 422 for everything else."""
    path_errors = [
        error for error in exc.errors() if tuple(error.get("loc", ()))[:1] == ("path",)
    ]
    if not path_errors:
        return await request_validation_exception_handler(request, exc)

    names = ", ".join(str(error["loc"][-1]) for error in path_errors)
    logger.debug("Malformed path parameter on %s: %s", request.url.path, names)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": {"code": "bad_request", "message": f"Invalid identifier: {names}"}},
    )
