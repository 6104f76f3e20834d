# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment decision API endpoints.

- POST /decide - Approve or reject a pending enrollment (manager)
- DELETE /{enrollment_id} - Remove an enrollment (manager)
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db, require_auth
from src.api.errors import to_http_exception
from src.api.middleware.auth import CurrentUser
from src.domains.enrollment import EnrollmentService
from src.domains.errors import SeminarServiceError
from src.models.enrollment import DecideEnrollmentRequest, EnrollmentResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/decide",
    response_model=EnrollmentResponse,
    summary="Decide enrollment",
    description="Approve or reject an enrollment. Seminar owner or admin only.",
)
async def decide_enrollment(
    data: DecideEnrollmentRequest,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> EnrollmentResponse:
    """Approve or reject an enrollment.

    The applicant is notified after the decision is stored.

    Raises:
        HTTPException: 403 for non-managers, 404 if the enrollment is missing.
    """
    service = EnrollmentService(db)

    try:
        return await service.decide(data.enrollment_id, data.status, current_user.id)
    except SeminarServiceError as e:
        raise to_http_exception(e) from e


@router.delete(
    "/{enrollment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove enrollment",
    description="Permanently remove an enrollment. Seminar owner or admin only.",
)
async def remove_enrollment(
    enrollment_id: UUID,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> None:
    """Remove an enrollment record."""
    service = EnrollmentService(db)

    try:
        await service.remove_enrollment(str(enrollment_id), current_user.id)
    except SeminarServiceError as e:
        raise to_http_exception(e) from e
