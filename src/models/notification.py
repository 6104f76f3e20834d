# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification, role, permission, announcement and reminder schemas."""

from datetime import datetime
from typing import Literal

from pydantic import Field, model_validator

from src.models.common import APIModel, UUIDStr


class NotificationResponse(APIModel):
    """One inbox entry."""

    id: str
    kind: str
    title: str
    message: str
    seminar_id: str | None = None
    session_id: str | None = None
    enrollment_id: str | None = None
    is_read: bool
    created_at: datetime


class NotificationListResponse(APIModel):
    """A user's inbox."""

    items: list[NotificationResponse]
    total: int
    unread: int


class MarkAllReadResponse(APIModel):
    """Count of entries flipped to read."""

    updated: int


class ChangeRoleRequest(APIModel):
    """Admin change of a user's system role."""

    role: Literal["admin", "member"]


class UserResponse(APIModel):
    """User details."""

    id: str
    email: str
    name: str | None = None
    role: str


class GrantPermissionRequest(APIModel):
    """Grant a seminar-scoped role."""

    user_id: UUIDStr
    role: Literal["assistant", "moderator"]


class PermissionResponse(APIModel):
    """A seminar-scoped role holder."""

    id: str
    seminar_id: str
    user_id: str
    role: str
    granted_by: str | None = None
    created_at: datetime


class PermissionListResponse(APIModel):
    """Seminar-scoped role holders."""

    seminar_id: str
    items: list[PermissionResponse]
    total: int


class AnnouncementCreateRequest(APIModel):
    """Announcement to all users or to one seminar's approved members."""

    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1)
    is_global: bool = False
    seminar_id: UUIDStr | None = None

    @model_validator(mode="after")
    def validate_scope(self) -> "AnnouncementCreateRequest":
        """A scoped announcement needs a seminar."""
        if not self.is_global and not self.seminar_id:
            raise ValueError("seminarId is required for a seminar announcement")
        return self


class AnnouncementResponse(APIModel):
    """Created announcement with fan-out size."""

    id: str
    title: str
    content: str
    is_global: bool
    seminar_id: str | None = None
    author_id: str
    created_at: datetime
    recipient_count: int = 0


class ReminderPreview(APIModel):
    """A session due for a reminder and who would receive it."""

    session_id: str
    seminar_id: str
    seminar_title: str
    session_title: str
    starts_at: datetime
    recipient_ids: list[str]


class ReminderPreviewResponse(APIModel):
    """Sessions inside the reminder window."""

    hours_ahead: int
    window_start: datetime
    window_end: datetime
    items: list[ReminderPreview]


class ReminderRunResponse(APIModel):
    """Outcome of one reminder run."""

    hours_ahead: int
    sessions: int
    sent: int
    failed: int
