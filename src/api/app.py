# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI application factory for the seminar attendance API.

Run with:
    uvicorn src.api.app:create_app --factory
"""

import inspect
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Awaitable, Callable

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError

from src.api.errors import (
    database_error_handler,
    sqlalchemy_error_handler,
    validation_error_handler,
)
from src.api.middleware.auth import AuthMiddleware
from src.api.middleware.rate_limit import limiter, rate_limit_exceeded_handler
from src.api.middleware.request_context import RequestContextMiddleware
from src.api.routes import health
from src.api.v1 import router as v1_router
from src.core.config import get_settings
from src.core.config.settings import Settings
from src.infrastructure.background import (
    setup_dramatiq,
    shutdown_dramatiq,
    start_scheduler,
    stop_scheduler,
)
from src.infrastructure.database.connection import DatabaseError, close_database, init_database
from src.utils.logging import setup_logging

logger = logging.getLogger(__name__)


async def _run_step(name: str, step: Callable[[], Awaitable[object] | object]) -> None:
    # A failing dependency is logged and the API still starts; /health/ready reports it
    try:
        result = step()
        if inspect.isawaitable(result):
            await result
        logger.info("%s: ok", name)
    except Exception as e:
        logger.warning("%s failed: %s", name, e)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Bring up the database, broker and scheduler; tear down in reverse."""
    settings = get_settings()
    setup_logging(settings)
    logger.info(
        "Starting seminar attendance API: environment=%s, debug=%s",
        settings.environment,
        settings.debug,
    )

    await _run_step("Database init", lambda: init_database(settings))
    await _run_step("Broker setup", setup_dramatiq)
    await _run_step("Scheduler start", start_scheduler)

    yield

    await _run_step("Scheduler stop", stop_scheduler)
    await _run_step("Broker shutdown", shutdown_dramatiq)
    await _run_step("Database close", close_database)
    logger.info("Seminar attendance API stopped")


def _add_middleware(app: FastAPI, settings: Settings) -> None:
    # Last added runs first: CORS, then auth, then request context
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(AuthMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins_list,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=settings.cors.allow_methods,
        allow_headers=settings.cors.allow_headers,
    )


def create_app() -> FastAPI:
    """Build the application with routes, middleware and error handlers."""
    settings = get_settings()

    app = FastAPI(
        title="Seminar Attendance API",
        description="Seminar enrollment, session check-in and attendance tracking",
        version=health.API_VERSION,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
        # Redirects from /path to /path/ drop the Authorization header
        redirect_slashes=False,
    )

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(DatabaseError, database_error_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_error_handler)

    _add_middleware(app, settings)

    app.include_router(health.router, tags=["Health"])
    app.include_router(v1_router)

    return app
