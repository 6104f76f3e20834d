# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment request/response schemas."""

from datetime import datetime
from typing import Literal

from pydantic import Field

from src.models.common import APIModel, UUIDStr


class DecideEnrollmentRequest(APIModel):
    """Owner/admin decision on a pending enrollment."""

    enrollment_id: UUIDStr = Field(description="Enrollment to decide")
    status: Literal["approved", "rejected"] = Field(description="New status")


class EnrollmentResponse(APIModel):
    """Enrollment details."""

    id: str
    user_id: str
    seminar_id: str
    status: str
    applied_at: datetime
    approved_at: datetime | None = None
    approved_by: str | None = None
    notes: str | None = None
    user_name: str | None = None
    user_email: str | None = None


class EnrollmentListResponse(APIModel):
    """Enrollments of one seminar."""

    seminar_id: str
    items: list[EnrollmentResponse]
    total: int


class EnrollmentStats(APIModel):
    """Counts by status alongside capacity."""

    seminar_id: str
    capacity: int
    pending: int = 0
    approved: int = 0
    rejected: int = 0
    cancelled: int = 0
    total: int = 0
    available: int = Field(description="Seats left: capacity minus approved, never negative")
