# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Session API endpoints.

- GET /upcoming - The caller's sessions in the coming days

Session management (manager only, each recalculates seminar dates):
- PATCH /{session_id} - Update a session
- DELETE /{session_id} - Delete a session

Credentials:
- POST /{session_id}/credential - Issue a check-in credential (manager)
- PUT /{session_id}/credential:verify - Check in with a token or numeric code

Attendance:
- POST /{session_id}/attendance - Mark a member's attendance (manager)
- GET /{session_id}/attendance - Roster with attendance (manager)
"""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db, require_auth
from src.api.errors import to_http_exception
from src.api.middleware.auth import CurrentUser
from src.api.middleware.rate_limit import CHECK_IN_SCOPE, check_in_limit, limiter
from src.domains.attendance import AttendanceService
from src.domains.credential import CredentialService
from src.domains.errors import SeminarServiceError
from src.domains.session import SessionService
from src.models.attendance import (
    AttendanceResponse,
    CheckInResponse,
    CredentialResponse,
    SessionAttendanceResponse,
    SetAttendanceRequest,
    VerifyCredentialRequest,
)
from src.models.session import (
    SessionResponse,
    SessionUpdateRequest,
    UpcomingSessionListResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/upcoming",
    response_model=UpcomingSessionListResponse,
    summary="Upcoming sessions",
    description="The caller's sessions in the coming days across seminars they are approved in.",
)
async def list_upcoming_sessions(
    days: Annotated[int, Query(ge=1, le=30, description="Look-ahead in days")] = 7,
    limit: Annotated[int, Query(ge=1, le=50)] = 10,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> UpcomingSessionListResponse:
    """List the caller's upcoming sessions, soonest first."""
    service = SessionService(db)
    return await service.list_upcoming(current_user.id, days=days, limit=limit)


@router.patch(
    "/{session_id}",
    response_model=SessionResponse,
    summary="Update session",
    description="Partially update a session. Manager only.",
)
async def update_session(
    session_id: UUID,
    data: SessionUpdateRequest,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> SessionResponse:
    """Update a session."""
    service = SessionService(db)

    try:
        return await service.update_session(str(session_id), data, current_user.id)
    except SeminarServiceError as e:
        raise to_http_exception(e) from e


@router.delete(
    "/{session_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete session",
    description="Delete a session with its credential and attendance. Manager only.",
)
async def delete_session(
    session_id: UUID,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> None:
    """Delete a session."""
    service = SessionService(db)

    try:
        await service.delete_session(str(session_id), current_user.id)
    except SeminarServiceError as e:
        raise to_http_exception(e) from e


@router.post(
    "/{session_id}/credential",
    response_model=CredentialResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Issue credential",
    description=(
        "Issue a fresh check-in credential, replacing any previous one. "
        "Seminar owner or admin only."
    ),
)
async def issue_credential(
    session_id: UUID,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> CredentialResponse:
    """Issue a credential for display as a QR code and numeric code."""
    service = CredentialService(db)

    try:
        return await service.issue(str(session_id), current_user.id)
    except SeminarServiceError as e:
        raise to_http_exception(e) from e


@router.put(
    "/{session_id}/credential:verify",
    response_model=CheckInResponse,
    summary="Verify credential",
    description=(
        "Check in to the session with its token or numeric code. "
        "Errors carry a code: invalid_code, expired, not_enrolled."
    ),
)
@limiter.shared_limit(check_in_limit, scope=CHECK_IN_SCOPE)
async def verify_credential(
    request: Request,
    session_id: UUID,
    data: VerifyCredentialRequest,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> CheckInResponse:
    """Verify a presented credential and record the caller as present."""
    service = CredentialService(db)

    try:
        return await service.verify(current_user.id, data, session_id=str(session_id))
    except SeminarServiceError as e:
        raise to_http_exception(e) from e


@router.post(
    "/{session_id}/attendance",
    response_model=AttendanceResponse,
    summary="Set attendance",
    description="Mark an approved member present, absent, late or excused. Manager only.",
)
async def set_attendance(
    session_id: UUID,
    data: SetAttendanceRequest,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> AttendanceResponse:
    """Mark attendance without a credential."""
    service = AttendanceService(db)

    try:
        return await service.set_attendance(str(session_id), data, current_user.id)
    except SeminarServiceError as e:
        raise to_http_exception(e) from e


@router.get(
    "/{session_id}/attendance",
    response_model=SessionAttendanceResponse,
    summary="Session attendance",
    description="Every approved member with their status; absent when unrecorded. Manager only.",
)
async def get_session_attendance(
    session_id: UUID,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> SessionAttendanceResponse:
    """Get the attendance roster of a session."""
    service = AttendanceService(db)

    try:
        return await service.get_session_attendance(str(session_id), current_user.id)
    except SeminarServiceError as e:
        raise to_http_exception(e) from e
