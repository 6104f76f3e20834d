# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Attendance domain: upsert-based recording and attendance views."""

from src.domains.attendance.service import (
    ATTENDED_STATUSES,
    AttendanceService,
    has_approved_enrollment,
    to_attendance_response,
    upsert_attendance,
)

__all__ = [
    "AttendanceService",
    "ATTENDED_STATUSES",
    "upsert_attendance",
    "has_approved_enrollment",
    "to_attendance_response",
]
