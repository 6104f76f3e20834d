# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for the seminar attendance service.

Each domain module provides one service class taking an ``AsyncSession``.
Services raise the shared error taxonomy from ``src.domains.errors``.

Domains:
    access: Centralized "owner or admin" manager checks.
    auth: Bearer token decoding.
    enrollment: Enrollment requests and owner/admin decisions.
    credential: Session check-in credential issuance and verification.
    attendance: Upsert-based attendance recording and views.
    session: Session CRUD driving seminar date aggregation.
    seminar: Seminar date span aggregation.
    notification: The user's notification inbox.
    user: System role changes.
    permission: Seminar-scoped role grants.
    announcement: Global and seminar announcements.
    reminder: Upcoming session reminders.
"""
