# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Announcements with notification fan-out.

A global announcement (admin only) reaches every user; a seminar
announcement (manager only) reaches the seminar's approved members.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.access import SeminarAccessService
from src.domains.errors import BadRequestError
from src.infrastructure.database.models import (
    Announcement,
    Enrollment,
    EnrollmentStatus,
    NotificationKind,
    User,
)
from src.infrastructure.notifications import (
    NotificationDispatcher,
    get_notification_dispatcher,
)
from src.models.notification import AnnouncementCreateRequest, AnnouncementResponse

logger = logging.getLogger(__name__)

EXCERPT_LENGTH = 100


def make_excerpt(content: str) -> str:
    """First 100 characters of the content followed by an ellipsis."""
    return f"{content[:EXCERPT_LENGTH]}..."


class AnnouncementService:
    """Creates announcements and notifies their audience.

    Attributes:
        db: Async database session.
        access: Seminar authorization checks.
        dispatcher: Notification dispatcher.
    """

    def __init__(
        self,
        db: AsyncSession,
        dispatcher: NotificationDispatcher | None = None,
    ) -> None:
        self.db = db
        self.access = SeminarAccessService(db)
        self.dispatcher = dispatcher or get_notification_dispatcher()

    async def create(
        self,
        request: AnnouncementCreateRequest,
        actor_id: str,
    ) -> AnnouncementResponse:
        """Create an announcement and fan it out.

        Args:
            request: Title, content and scope.
            actor_id: Author.

        Returns:
            The announcement with its recipient count.

        Raises:
            BadRequestError: If a seminar announcement has no seminar.
            PermissionDeniedError: Global without admin, or scoped without manager.
            SeminarNotFoundError: If the seminar does not exist.
        """
        if request.is_global:
            await self.access.require_admin(actor_id)
            result = await self.db.execute(select(User.id))
            seminar_id = None
        else:
            if not request.seminar_id:
                raise BadRequestError("A seminar announcement needs a seminar")
            seminar = await self.access.require_manager(actor_id, request.seminar_id)
            seminar_id = str(seminar.id)
            result = await self.db.execute(
                select(Enrollment.user_id).where(
                    Enrollment.seminar_id == seminar_id,
                    Enrollment.status == EnrollmentStatus.APPROVED.value,
                )
            )
        recipients = [str(user_id) for user_id in result.scalars().all()]

        announcement = Announcement(
            title=request.title,
            content=request.content,
            is_global=request.is_global,
            seminar_id=seminar_id,
            author_id=str(actor_id),
        )
        self.db.add(announcement)
        await self.db.commit()
        await self.db.refresh(announcement)

        logger.info(
            "Announcement created: announcement=%s, global=%s, seminar=%s, recipients=%d, by=%s",
            announcement.id,
            request.is_global,
            seminar_id,
            len(recipients),
            actor_id,
        )

        self.dispatcher.dispatch(
            recipients,
            NotificationKind.ANNOUNCEMENT,
            {"title": request.title, "excerpt": make_excerpt(request.content)},
            seminar_id=seminar_id,
        )

        return AnnouncementResponse(
            id=str(announcement.id),
            title=announcement.title,
            content=announcement.content,
            is_global=announcement.is_global,
            seminar_id=seminar_id,
            author_id=str(announcement.author_id),
            created_at=announcement.created_at,
            recipient_count=len(recipients),
        )
