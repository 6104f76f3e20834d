# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Credential and attendance schemas."""

from datetime import datetime
from typing import Literal

from pydantic import Field

from src.models.common import APIModel, UUIDStr

AttendanceStatusLiteral = Literal["present", "absent", "late", "excused"]


class CredentialResponse(APIModel):
    """A freshly issued check-in credential."""

    session_id: str
    seminar_id: str
    scan_url: str = Field(description="Deep link embedding token, session and seminar")
    numeric_code: str = Field(description="6-digit fallback code")
    expires_at: datetime
    token: str


class VerifyCredentialRequest(APIModel):
    """Presented credential for a known session.

    Exactly one of ``token`` or ``numeric_code`` must be given.
    """

    token: str | None = None
    numeric_code: str | None = None
    expires_at: datetime | None = Field(
        default=None,
        description="Expiry hint carried in a scanned payload",
    )


class CheckInRequest(VerifyCredentialRequest):
    """Presented credential for a seminar, session optional in numeric mode."""

    session_id: UUIDStr | None = None


class AttendanceResponse(APIModel):
    """One attendance row."""

    id: str
    user_id: str
    session_id: str
    status: str
    checked_at: datetime | None = None
    checked_by: str | None = None
    notes: str | None = None


class CheckInResponse(APIModel):
    """Result of a successful self check-in."""

    attendance: AttendanceResponse
    seminar_id: str
    seminar_title: str


class SetAttendanceRequest(APIModel):
    """Manager-initiated attendance marking."""

    user_id: UUIDStr
    status: AttendanceStatusLiteral
    notes: str | None = None


class SessionAttendanceEntry(APIModel):
    """One approved enrollee's status for a session."""

    user_id: str
    user_name: str | None = None
    user_email: str | None = None
    status: str
    checked_at: datetime | None = None
    checked_by: str | None = None
    notes: str | None = None


class SessionAttendanceResponse(APIModel):
    """Roster of a session with attendance."""

    session_id: str
    seminar_id: str
    items: list[SessionAttendanceEntry]
    present: int
    total: int


class MyAttendanceEntry(APIModel):
    """The requester's status for one session."""

    session_id: str
    session_number: int
    title: str
    date: datetime
    status: str
    checked_at: datetime | None = None


class MyAttendanceResponse(APIModel):
    """The requester's attendance across a seminar."""

    seminar_id: str
    items: list[MyAttendanceEntry]
    attended: int
    total: int
