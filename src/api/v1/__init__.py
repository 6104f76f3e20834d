# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Routers mounted under ``/api/v1``.

Modules:
    seminars: Seminar-scoped enrollment, session, check-in and permission endpoints.
    enrollments: Enrollment decisions and removal.
    sessions: Session updates, credentials and attendance marking.
    notifications: The caller's notification inbox.
    announcements: Global and seminar announcements.
    admin: Role changes, date recalculation and reminders.
"""

from fastapi import APIRouter

from src.api.v1 import admin, announcements, enrollments, notifications, seminars, sessions

router = APIRouter(prefix="/api/v1")

router.include_router(seminars.router, prefix="/seminars", tags=["Seminars"])
router.include_router(enrollments.router, prefix="/enrollments", tags=["Enrollments"])
router.include_router(sessions.router, prefix="/sessions", tags=["Sessions"])
router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
router.include_router(announcements.router, prefix="/announcements", tags=["Announcements"])
router.include_router(admin.router, prefix="/admin", tags=["Admin"])

__all__ = ["router"]
