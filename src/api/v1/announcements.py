# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Announcement API endpoints.

- POST / - Create a global (admin) or seminar (manager) announcement
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db, require_auth
from src.api.errors import to_http_exception
from src.api.middleware.auth import CurrentUser
from src.domains.announcement import AnnouncementService
from src.domains.errors import SeminarServiceError
from src.models.notification import AnnouncementCreateRequest, AnnouncementResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=AnnouncementResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create announcement",
    description=(
        "Global announcements require an admin and reach every user; "
        "seminar announcements require a manager and reach approved members."
    ),
)
async def create_announcement(
    data: AnnouncementCreateRequest,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> AnnouncementResponse:
    """Create an announcement and notify its audience."""
    service = AnnouncementService(db)

    try:
        return await service.create(data, current_user.id)
    except SeminarServiceError as e:
        raise to_http_exception(e) from e
