# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Liveness and readiness checks.

``/health`` answers as long as the process serves requests.
``/health/ready`` is false while PostgreSQL is unreachable; the broker's
queue depths are reported alongside but do not gate readiness, since
notifications are best-effort.
"""

import logging
import time
from datetime import datetime
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, Field

from src.core.config import get_settings
from src.infrastructure.background.broker import get_broker_manager
from src.infrastructure.database.connection import check_database_connection
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)

router = APIRouter()

API_VERSION = "1.0.0"

_started_at = time.monotonic()


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    version: str
    environment: str
    uptime_seconds: int


class ReadinessResponse(BaseModel):
    ready: bool = Field(description="True when the database answers")
    checks: dict[str, Any] = Field(description="Per-dependency results")


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    return HealthResponse(
        status="healthy",
        timestamp=utc_now(),
        version=API_VERSION,
        environment=get_settings().environment,
        uptime_seconds=int(time.monotonic() - _started_at),
    )


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness_check() -> ReadinessResponse:
    started = time.monotonic()
    database_ok = await check_database_connection()
    latency_ms = round((time.monotonic() - started) * 1000, 2)

    if not database_ok:
        logger.error("Readiness check failed: database unreachable")

    return ReadinessResponse(
        ready=database_ok,
        checks={
            "database": {
                "status": "healthy" if database_ok else "unhealthy",
                "latency_ms": latency_ms,
            },
            "broker": get_broker_manager().queue_depths(),
        },
    )
