# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy ORM models.

Importing this package registers every table on ``Base.metadata``.
"""

from src.infrastructure.database.models.base import Base, TimestampMixin, UUIDMixin
from src.infrastructure.database.models.enrollment import (
    Attendance,
    AttendanceStatus,
    Enrollment,
    EnrollmentStatus,
)
from src.infrastructure.database.models.notification import Notification, NotificationKind
from src.infrastructure.database.models.permission import (
    Announcement,
    SeminarPermission,
    SeminarRole,
)
from src.infrastructure.database.models.seminar import (
    Seminar,
    SeminarSession,
    SeminarStatus,
    SessionStatus,
)
from src.infrastructure.database.models.user import User, UserRole

__all__ = [
    "Base",
    "UUIDMixin",
    "TimestampMixin",
    # Users
    "User",
    "UserRole",
    # Seminars
    "Seminar",
    "SeminarStatus",
    "SeminarSession",
    "SessionStatus",
    # Enrollment and attendance
    "Enrollment",
    "EnrollmentStatus",
    "Attendance",
    "AttendanceStatus",
    # Notifications
    "Notification",
    "NotificationKind",
    # Permissions and announcements
    "SeminarPermission",
    "SeminarRole",
    "Announcement",
]
