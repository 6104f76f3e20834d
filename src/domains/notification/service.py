# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification inbox reads and read-state updates."""

import logging

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.errors import NotFoundError
from src.infrastructure.database.models import Notification
from src.models.notification import (
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationResponse,
)

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 50


class NotificationNotFoundError(NotFoundError):
    """Raised when a notification does not exist for the user."""


class InboxService:
    """A user's view of their notifications.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def list_notifications(
        self,
        user_id: str,
        unread_only: bool = False,
        limit: int = DEFAULT_LIMIT,
    ) -> NotificationListResponse:
        """Newest-first notifications of a user.

        Args:
            user_id: Inbox owner.
            unread_only: Only return unread entries.
            limit: Maximum number of entries.

        Returns:
            Entries with the user's unread count.
        """
        query = select(Notification).where(Notification.user_id == str(user_id))
        if unread_only:
            query = query.where(Notification.is_read.is_(False))
        query = query.order_by(Notification.created_at.desc()).limit(limit)

        result = await self.db.execute(query)
        items = [self._to_response(n) for n in result.scalars().all()]

        unread_result = await self.db.execute(
            select(func.count(Notification.id)).where(
                Notification.user_id == str(user_id),
                Notification.is_read.is_(False),
            )
        )
        unread = unread_result.scalar_one()

        return NotificationListResponse(items=items, total=len(items), unread=unread)

    async def mark_read(self, notification_id: str, user_id: str) -> NotificationResponse:
        """Mark one of the user's notifications as read.

        Raises:
            NotificationNotFoundError: If it does not exist or belongs to someone else.
        """
        result = await self.db.execute(
            select(Notification).where(
                Notification.id == str(notification_id),
                Notification.user_id == str(user_id),
            )
        )
        notification = result.scalar_one_or_none()
        if notification is None:
            raise NotificationNotFoundError(f"Notification {notification_id} not found")

        if not notification.is_read:
            notification.is_read = True
            await self.db.commit()
            await self.db.refresh(notification)

        return self._to_response(notification)

    async def mark_all_read(self, user_id: str) -> MarkAllReadResponse:
        """Mark every unread notification of the user as read."""
        result = await self.db.execute(
            update(Notification)
            .where(
                Notification.user_id == str(user_id),
                Notification.is_read.is_(False),
            )
            .values(is_read=True)
        )
        await self.db.commit()

        updated = result.rowcount or 0
        logger.info("Notifications marked read: user=%s, count=%d", user_id, updated)

        return MarkAllReadResponse(updated=updated)

    def _to_response(self, notification: Notification) -> NotificationResponse:
        return NotificationResponse(
            id=str(notification.id),
            kind=notification.kind,
            title=notification.title,
            message=notification.message,
            seminar_id=str(notification.seminar_id) if notification.seminar_id else None,
            session_id=str(notification.session_id) if notification.session_id else None,
            enrollment_id=str(notification.enrollment_id) if notification.enrollment_id else None,
            is_read=notification.is_read,
            created_at=notification.created_at,
        )
