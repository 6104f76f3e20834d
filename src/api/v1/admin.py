# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Admin API endpoints.

All endpoints require the caller's stored role to be ``admin``.

- PATCH /users/{user_id}/role - Change a user's system role
- POST /recalculate-seminar-dates - Recompute every seminar's date span
- GET /session-reminders - Preview sessions due for a reminder
- POST /session-reminders - Send session reminders now
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
from src.domains.reminder import ReminderService
from src.domains.seminar import SeminarDateAggregator
from src.domains.user import UserService
from src.models.notification import (
    ChangeRoleRequest,
    ReminderPreviewResponse,
    ReminderRunResponse,
    UserResponse,
)
from src.models.session import RecalculateResponse

logger = logging.getLogger(__name__)

router = APIRouter()

HoursAhead = Annotated[int, Query(alias="hoursAhead", description="Lead time in hours")]


@router.patch(
    "/users/{user_id}/role",
    response_model=UserResponse,
    summary="Change user role",
)
async def change_role(
    user_id: UUID,
    data: ChangeRoleRequest,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    """Change a user's system role and notify them."""
    service = UserService(db)

    try:
        return await service.change_role(str(user_id), data.role, current_user.id)
    except SeminarServiceError as e:
        raise to_http_exception(e) from e


@router.post(
    "/recalculate-seminar-dates",
    response_model=RecalculateResponse,
    summary="Recalculate seminar dates",
)
async def recalculate_seminar_dates(
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> RecalculateResponse:
    """Recompute every seminar's start and end date from its sessions."""
    service = SeminarDateAggregator(db)

    try:
        return await service.recalculate_all(current_user.id)
    except SeminarServiceError as e:
        raise to_http_exception(e) from e


@router.get(
    "/session-reminders",
    response_model=ReminderPreviewResponse,
    summary="Preview session reminders",
)
async def preview_session_reminders(
    hours_ahead: HoursAhead = 24,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> ReminderPreviewResponse:
    """List sessions inside the reminder window and their recipients."""
    service = ReminderService(db)

    try:
        return await service.find_due_sessions(hours_ahead, actor_id=current_user.id)
    except SeminarServiceError as e:
        raise to_http_exception(e) from e


@router.post(
    "/session-reminders",
    response_model=ReminderRunResponse,
    summary="Send session reminders",
)
async def send_session_reminders(
    hours_ahead: HoursAhead = 24,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> ReminderRunResponse:
    """Notify approved members of sessions inside the reminder window."""
    service = ReminderService(db)

    try:
        return await service.send_session_reminders(hours_ahead, actor_id=current_user.id)
    except SeminarServiceError as e:
        raise to_http_exception(e) from e
