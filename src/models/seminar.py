# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Seminar request/response schemas.

``start_date`` and ``end_date`` are read-only here: they follow the
seminar's sessions and requests that carry them are rejected.
"""

from datetime import date, datetime
from typing import Literal

from pydantic import ConfigDict, Field, model_validator

from src.models.common import APIModel

SeminarStatusLiteral = Literal["draft", "recruiting", "in_progress", "completed", "cancelled"]


def _check_window(start: datetime | None, end: datetime | None) -> None:
    if start is not None and end is not None and start > end:
        raise ValueError("applicationStart must not be after applicationEnd")


class SeminarCreateRequest(APIModel):
    """New seminar owned by the caller."""

    model_config = ConfigDict(extra="forbid")

    title: str = Field(min_length=1, max_length=200)
    description: str | None = None
    capacity: int = Field(gt=0)
    status: Literal["draft", "recruiting"] = "draft"
    application_start: datetime | None = None
    application_end: datetime | None = None

    @model_validator(mode="after")
    def validate_window(self) -> "SeminarCreateRequest":
        """The application window must not end before it starts."""
        _check_window(self.application_start, self.application_end)
        return self


class SeminarUpdateRequest(APIModel):
    """Partial seminar update. Omitted fields are left unchanged."""

    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    capacity: int | None = Field(default=None, gt=0)
    status: SeminarStatusLiteral | None = None
    application_start: datetime | None = None
    application_end: datetime | None = None

    @model_validator(mode="after")
    def validate_window(self) -> "SeminarUpdateRequest":
        """Checked here when both ends are given, against stored values otherwise."""
        _check_window(self.application_start, self.application_end)
        return self


class SeminarResponse(APIModel):
    """Seminar details with its derived date span and counts."""

    id: str
    owner_id: str
    owner_name: str | None = None
    title: str
    description: str | None = None
    capacity: int
    status: str
    start_date: date | None = None
    end_date: date | None = None
    application_start: datetime | None = None
    application_end: datetime | None = None
    approved_count: int = 0
    session_count: int = 0
    created_at: datetime | None = None


class SeminarListResponse(APIModel):
    """Seminars, newest first."""

    items: list[SeminarResponse]
    total: int


class SeminarRoleResponse(APIModel):
    """What the caller may do in one seminar."""

    seminar_id: str
    can_manage: bool
    is_owner: bool
    is_admin: bool
    user_role: str = Field(description="Stored system role, member when unknown")
    seminar_role: str | None = Field(
        default=None,
        description="Seminar-scoped role (assistant, moderator) if granted",
    )
