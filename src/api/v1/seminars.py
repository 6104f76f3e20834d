# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Seminar API endpoints.

Seminar endpoints:
- GET / - List seminars
- POST / - Create a seminar
- GET /{seminar_id} - Seminar details
- PUT /{seminar_id} - Update a seminar (manager)
- GET /{seminar_id}/check-role - The caller's standing in the seminar

Enrollment endpoints:
- POST /{seminar_id}/enrollments - Request enrollment
- GET /{seminar_id}/enrollments - List enrollments (manager)
- GET /{seminar_id}/enrollments/stats - Counts by status and capacity

Session endpoints:
- POST /{seminar_id}/sessions - Create a session (manager)
- GET /{seminar_id}/sessions - List sessions

Attendance endpoints:
- PUT /{seminar_id}/attendance/check-in - Self check-in with a code
- GET /{seminar_id}/my-attendance - The caller's attendance

Permission endpoints:
- POST /{seminar_id}/permissions - Grant a seminar role (manager)
- GET /{seminar_id}/permissions - List seminar roles (manager)
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
from src.domains.enrollment import EnrollmentService
from src.domains.errors import SeminarServiceError
from src.domains.permission import PermissionService
from src.domains.seminar import SeminarService
from src.domains.session import SessionService
from src.models.attendance import CheckInRequest, CheckInResponse, MyAttendanceResponse
from src.models.enrollment import EnrollmentListResponse, EnrollmentResponse, EnrollmentStats
from src.models.notification import (
    GrantPermissionRequest,
    PermissionListResponse,
    PermissionResponse,
)
from src.models.seminar import (
    SeminarCreateRequest,
    SeminarListResponse,
    SeminarResponse,
    SeminarRoleResponse,
    SeminarStatusLiteral,
    SeminarUpdateRequest,
)
from src.models.session import SessionCreateRequest, SessionListResponse, SessionResponse

logger = logging.getLogger(__name__)

router = APIRouter()


# =========================================================================
# Seminars
# =========================================================================


@router.get(
    "",
    response_model=SeminarListResponse,
    summary="List seminars",
    description="List seminars newest first, optionally filtered by status or text.",
)
async def list_seminars(
    status_filter: Annotated[
        SeminarStatusLiteral | None, Query(alias="status", description="Filter by status")
    ] = None,
    search: Annotated[
        str | None, Query(max_length=100, description="Match on title or description")
    ] = None,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> SeminarListResponse:
    """List seminars with owner name and counts."""
    service = SeminarService(db)
    return await service.list_seminars(status=status_filter, search=search)


@router.post(
    "",
    response_model=SeminarResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create seminar",
    description="Create a seminar owned by the caller. Its dates follow its sessions.",
)
async def create_seminar(
    data: SeminarCreateRequest,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> SeminarResponse:
    """Create a seminar."""
    service = SeminarService(db)

    try:
        return await service.create_seminar(data, current_user.id)
    except SeminarServiceError as e:
        raise to_http_exception(e) from e


@router.get(
    "/{seminar_id}",
    response_model=SeminarResponse,
    summary="Get seminar",
    description="Seminar details with owner name, approved count and session count.",
)
async def get_seminar(
    seminar_id: UUID,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> SeminarResponse:
    """Get one seminar."""
    service = SeminarService(db)

    try:
        return await service.get_seminar(str(seminar_id))
    except SeminarServiceError as e:
        raise to_http_exception(e) from e


@router.put(
    "/{seminar_id}",
    response_model=SeminarResponse,
    summary="Update seminar",
    description=(
        "Partially update a seminar. startDate and endDate are derived from "
        "sessions and are rejected here. Manager only."
    ),
)
async def update_seminar(
    seminar_id: UUID,
    data: SeminarUpdateRequest,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> SeminarResponse:
    """Update a seminar."""
    service = SeminarService(db)

    try:
        return await service.update_seminar(str(seminar_id), data, current_user.id)
    except SeminarServiceError as e:
        raise to_http_exception(e) from e


@router.get(
    "/{seminar_id}/check-role",
    response_model=SeminarRoleResponse,
    summary="Check role",
    description="Whether the caller owns, administers or may manage the seminar.",
)
async def check_role(
    seminar_id: UUID,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> SeminarRoleResponse:
    """Report the caller's standing in a seminar."""
    service = SeminarService(db)

    try:
        return await service.check_role(str(seminar_id), current_user.id)
    except SeminarServiceError as e:
        raise to_http_exception(e) from e


# =========================================================================
# Enrollments
# =========================================================================


@router.post(
    "/{seminar_id}/enrollments",
    response_model=EnrollmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request enrollment",
    description="Apply to a seminar. The enrollment starts as pending.",
)
async def request_enrollment(
    seminar_id: UUID,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> EnrollmentResponse:
    """Create a pending enrollment for the caller.

    Raises:
        HTTPException: 404 if the seminar is missing, 409 if already enrolled.
    """
    service = EnrollmentService(db)

    try:
        return await service.request_enrollment(current_user.id, str(seminar_id))
    except SeminarServiceError as e:
        raise to_http_exception(e) from e


@router.get(
    "/{seminar_id}/enrollments",
    response_model=EnrollmentListResponse,
    summary="List enrollments",
    description="List a seminar's enrollments ordered by application time. Manager only.",
)
async def list_enrollments(
    seminar_id: UUID,
    status_filter: Annotated[
        str | None, Query(alias="status", description="Filter by status")
    ] = None,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> EnrollmentListResponse:
    """List enrollments of a seminar."""
    service = EnrollmentService(db)

    try:
        return await service.list_enrollments(
            str(seminar_id), current_user.id, status=status_filter
        )
    except SeminarServiceError as e:
        raise to_http_exception(e) from e


@router.get(
    "/{seminar_id}/enrollments/stats",
    response_model=EnrollmentStats,
    summary="Enrollment statistics",
    description="Counts by status alongside the seminar's capacity.",
)
async def enrollment_stats(
    seminar_id: UUID,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> EnrollmentStats:
    """Get enrollment counts for the capacity bar."""
    service = EnrollmentService(db)

    try:
        return await service.get_stats(str(seminar_id))
    except SeminarServiceError as e:
        raise to_http_exception(e) from e


# =========================================================================
# Sessions
# =========================================================================


@router.post(
    "/{seminar_id}/sessions",
    response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create session",
    description="Add a session; the seminar's date span is recalculated. Manager only.",
)
async def create_session(
    seminar_id: UUID,
    data: SessionCreateRequest,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> SessionResponse:
    """Create a session numbered after the current last one."""
    service = SessionService(db)

    try:
        return await service.create_session(str(seminar_id), data, current_user.id)
    except SeminarServiceError as e:
        raise to_http_exception(e) from e


@router.get(
    "/{seminar_id}/sessions",
    response_model=SessionListResponse,
    summary="List sessions",
    description="List a seminar's sessions ordered by number.",
)
async def list_sessions(
    seminar_id: UUID,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> SessionListResponse:
    """List sessions of a seminar."""
    service = SessionService(db)

    try:
        return await service.list_sessions(str(seminar_id))
    except SeminarServiceError as e:
        raise to_http_exception(e) from e


# =========================================================================
# Attendance
# =========================================================================


@router.put(
    "/{seminar_id}/attendance/check-in",
    response_model=CheckInResponse,
    summary="Check in",
    description=(
        "Check in with a numeric code, or a token plus session. "
        "Errors carry a code: invalid_code, expired, not_enrolled."
    ),
)
@limiter.shared_limit(check_in_limit, scope=CHECK_IN_SCOPE)
async def check_in(
    request: Request,
    seminar_id: UUID,
    data: CheckInRequest,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> CheckInResponse:
    """Verify a presented code and record the caller as present."""
    service = CredentialService(db)

    try:
        return await service.verify(
            current_user.id,
            data,
            seminar_id=str(seminar_id),
            session_id=data.session_id,
        )
    except SeminarServiceError as e:
        raise to_http_exception(e) from e


@router.get(
    "/{seminar_id}/my-attendance",
    response_model=MyAttendanceResponse,
    summary="My attendance",
    description="The caller's status for every session of the seminar.",
)
async def my_attendance(
    seminar_id: UUID,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> MyAttendanceResponse:
    """Get the caller's attendance for a seminar."""
    service = AttendanceService(db)

    try:
        return await service.get_my_attendance(str(seminar_id), current_user.id)
    except SeminarServiceError as e:
        raise to_http_exception(e) from e


# =========================================================================
# Permissions
# =========================================================================


@router.post(
    "/{seminar_id}/permissions",
    response_model=PermissionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Grant seminar role",
    description="Grant or replace an assistant/moderator role. Manager only.",
)
async def grant_permission(
    seminar_id: UUID,
    data: GrantPermissionRequest,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> PermissionResponse:
    """Grant a seminar-scoped role."""
    service = PermissionService(db)

    try:
        return await service.grant(str(seminar_id), data, current_user.id)
    except SeminarServiceError as e:
        raise to_http_exception(e) from e


@router.get(
    "/{seminar_id}/permissions",
    response_model=PermissionListResponse,
    summary="List seminar roles",
    description="List seminar-scoped role holders. Manager only.",
)
async def list_permissions(
    seminar_id: UUID,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> PermissionListResponse:
    """List seminar-scoped roles."""
    service = PermissionService(db)

    try:
        return await service.list_permissions(str(seminar_id), current_user.id)
    except SeminarServiceError as e:
        raise to_http_exception(e) from e
