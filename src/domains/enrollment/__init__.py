# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment domain: seminar membership requests and decisions."""

from src.domains.enrollment.service import DECIDABLE_STATUSES, EnrollmentService

__all__ = ["EnrollmentService", "DECIDABLE_STATUSES"]
