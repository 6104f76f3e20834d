# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification inbox API endpoints.

- GET / - List the caller's notifications
- POST /{notification_id}/read - Mark one as read
- POST /mark-all-read - Mark all as read
"""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db, require_auth
from src.api.errors import to_http_exception
from src.api.middleware.auth import CurrentUser
from src.domains.errors import SeminarServiceError
from src.domains.notification import InboxService
from src.models.notification import (
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "",
    response_model=NotificationListResponse,
    summary="List notifications",
    description="The caller's notifications, newest first.",
)
async def list_notifications(
    unread_only: Annotated[bool, Query(alias="unreadOnly")] = False,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> NotificationListResponse:
    """List the caller's notifications."""
    service = InboxService(db)
    return await service.list_notifications(current_user.id, unread_only=unread_only, limit=limit)


@router.post(
    "/mark-all-read",
    response_model=MarkAllReadResponse,
    summary="Mark all read",
)
async def mark_all_read(
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> MarkAllReadResponse:
    """Mark every unread notification of the caller as read."""
    service = InboxService(db)
    return await service.mark_all_read(current_user.id)


@router.post(
    "/{notification_id}/read",
    response_model=NotificationResponse,
    summary="Mark read",
)
async def mark_read(
    notification_id: UUID,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> NotificationResponse:
    """Mark one of the caller's notifications as read."""
    service = InboxService(db)

    try:
        return await service.mark_read(str(notification_id), current_user.id)
    except SeminarServiceError as e:
        raise to_http_exception(e) from e
