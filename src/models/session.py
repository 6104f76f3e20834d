# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Session and seminar date span schemas."""

from datetime import date, datetime
from typing import Literal

from pydantic import Field

from src.models.common import APIModel


class SessionCreateRequest(APIModel):
    """New session of a seminar."""

    title: str = Field(min_length=1, max_length=200)
    description: str | None = None
    date: datetime
    duration_minutes: int = Field(default=90, gt=0)
    location: str | None = Field(default=None, max_length=255)


class SessionUpdateRequest(APIModel):
    """Partial session update. Omitted fields are left unchanged."""

    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    date: datetime | None = None
    duration_minutes: int | None = Field(default=None, gt=0)
    location: str | None = Field(default=None, max_length=255)
    status: Literal["scheduled", "in_progress", "completed", "cancelled"] | None = None


class SessionResponse(APIModel):
    """Session details. The credential slot is never exposed here."""

    id: str
    seminar_id: str
    session_number: int
    title: str
    description: str | None = None
    date: datetime
    duration_minutes: int
    location: str | None = None
    status: str
    has_active_credential: bool = False


class SessionListResponse(APIModel):
    """Sessions of a seminar ordered by number."""

    seminar_id: str
    items: list[SessionResponse]
    total: int


class SeminarDateSpan(APIModel):
    """A seminar's derived date range."""

    seminar_id: str
    start_date: date | None = None
    end_date: date | None = None


class RecalculateResponse(APIModel):
    """Result of recomputing every seminar's date span."""

    items: list[SeminarDateSpan]
    total: int


class UpcomingSession(APIModel):
    """A session the caller is expected at."""

    id: str
    seminar_id: str
    seminar_title: str
    session_number: int
    title: str
    description: str | None = None
    date: datetime
    duration_minutes: int
    location: str | None = None


class UpcomingSessionListResponse(APIModel):
    """The caller's next sessions, soonest first."""

    items: list[UpcomingSession]
    total: int
