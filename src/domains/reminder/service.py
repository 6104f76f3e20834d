# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Session start reminders.

A run with ``hours_ahead = h`` covers sessions starting in the one-hour
window ``[now + (h - 1)h, now + h·h)``. Running it hourly therefore
reminds each session's approved members once, about ``h`` hours ahead.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.domains.access import SeminarAccessService
from src.domains.errors import BadRequestError
from src.infrastructure.database.models import (
    Enrollment,
    EnrollmentStatus,
    NotificationKind,
    SeminarSession,
    SessionStatus,
)
from src.infrastructure.notifications import NotificationService
from src.models.notification import (
    ReminderPreview,
    ReminderPreviewResponse,
    ReminderRunResponse,
)
from src.utils.datetime import ensure_utc, utc_now

logger = logging.getLogger(__name__)


def reminder_window(hours_ahead: int, now: datetime) -> tuple[datetime, datetime]:
    """Half-open window of session start times to remind about.

    Raises:
        BadRequestError: If ``hours_ahead`` is less than 1.
    """
    if hours_ahead < 1:
        raise BadRequestError("hours_ahead must be at least 1")
    return now + timedelta(hours=hours_ahead - 1), now + timedelta(hours=hours_ahead)


def format_start(starts_at: datetime) -> str:
    return ensure_utc(starts_at).strftime("%Y-%m-%d %H:%M UTC")


class ReminderService:
    """Finds upcoming sessions and notifies their members.

    Writes notifications directly rather than through the dispatcher, as
    it already runs inside a background worker.

    Attributes:
        db: Async database session.
        access: Authorization checks.
        notifications: Inbox writer.
    """

    def __init__(
        self,
        db: AsyncSession,
        notifications: NotificationService | None = None,
    ) -> None:
        self.db = db
        self.access = SeminarAccessService(db)
        self.notifications = notifications or NotificationService(db)

    async def find_due_sessions(
        self,
        hours_ahead: int = 24,
        now: datetime | None = None,
        actor_id: str | None = None,
    ) -> ReminderPreviewResponse:
        """Sessions starting inside the reminder window with their recipients.

        Args:
            hours_ahead: Lead time in hours.
            now: Reference instant, current time by default.
            actor_id: When given, must be an admin.

        Returns:
            Due sessions, earliest first. Cancelled sessions are skipped.

        Raises:
            BadRequestError: If ``hours_ahead`` is less than 1.
            PermissionDeniedError: If ``actor_id`` is not an admin.
        """
        if actor_id is not None:
            await self.access.require_admin(actor_id)

        window_start, window_end = reminder_window(hours_ahead, now or utc_now())

        result = await self.db.execute(
            select(SeminarSession)
            .options(selectinload(SeminarSession.seminar))
            .where(
                SeminarSession.date >= window_start,
                SeminarSession.date < window_end,
                SeminarSession.status != SessionStatus.CANCELLED.value,
            )
            .order_by(SeminarSession.date)
        )
        sessions = result.scalars().all()

        items = []
        for session in sessions:
            members = await self.db.execute(
                select(Enrollment.user_id).where(
                    Enrollment.seminar_id == session.seminar_id,
                    Enrollment.status == EnrollmentStatus.APPROVED.value,
                )
            )
            items.append(
                ReminderPreview(
                    session_id=str(session.id),
                    seminar_id=str(session.seminar_id),
                    seminar_title=session.seminar.title,
                    session_title=session.title,
                    starts_at=session.date,
                    recipient_ids=[str(u) for u in members.scalars().all()],
                )
            )

        return ReminderPreviewResponse(
            hours_ahead=hours_ahead,
            window_start=window_start,
            window_end=window_end,
            items=items,
        )

    async def send_session_reminders(
        self,
        hours_ahead: int = 24,
        now: datetime | None = None,
        actor_id: str | None = None,
    ) -> ReminderRunResponse:
        """Notify approved members of every due session.

        A failed insert for one recipient does not stop the others.

        Returns:
            Counts of sessions covered and notifications written or failed.
        """
        preview = await self.find_due_sessions(hours_ahead, now=now, actor_id=actor_id)

        sent = failed = 0
        for item in preview.items:
            if not item.recipient_ids:
                continue
            outcome = await self.notifications.notify_bulk(
                item.recipient_ids,
                NotificationKind.SESSION_REMINDER,
                {
                    "session_title": item.session_title,
                    "seminar_title": item.seminar_title,
                    "starts_at": format_start(item.starts_at),
                },
                seminar_id=item.seminar_id,
                session_id=item.session_id,
            )
            sent += len(outcome.sent)
            failed += len(outcome.failed)

        await self.db.commit()

        logger.info(
            "Session reminders sent: hours_ahead=%d, sessions=%d, sent=%d, failed=%d",
            hours_ahead,
            len(preview.items),
            sent,
            failed,
        )

        return ReminderRunResponse(
            hours_ahead=hours_ahead,
            sessions=len(preview.items),
            sent=sent,
            failed=failed,
        )
