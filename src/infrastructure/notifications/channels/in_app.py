# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Inbox channel backed by the ``notifications`` table.

Each row is flushed inside its own savepoint, so one failed insert rolls
back only itself and the caller's transaction stays usable for the rest
of the batch.
"""

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.models.base import generate_uuid
from src.infrastructure.database.models.notification import Notification
from src.infrastructure.notifications.channels.base import (
    BaseChannel,
    ChannelResult,
    ChannelType,
    NotificationPayload,
)


class InAppChannel(BaseChannel):
    """Writes inbox rows with the caller's session. Does not commit."""

    channel_type = ChannelType.IN_APP

    def __init__(self, session: AsyncSession) -> None:
        super().__init__()
        self._session = session

    async def send(self, payload: NotificationPayload) -> ChannelResult:
        row = Notification(
            id=generate_uuid(),
            user_id=payload.recipient_id,
            kind=payload.kind.value,
            title=payload.title,
            message=payload.message,
            seminar_id=payload.seminar_id,
            session_id=payload.session_id,
            enrollment_id=payload.enrollment_id,
            is_read=False,
        )

        try:
            async with self._session.begin_nested():
                self._session.add(row)
                await self._session.flush()
        except SQLAlchemyError as e:
            self.logger.warning(
                "Inbox write failed for user %s (%s): %s",
                payload.recipient_id,
                payload.kind.value,
                e,
                exc_info=True,
            )
            return ChannelResult.failed(self.channel_type, f"Database error: {e}")

        return ChannelResult.sent(self.channel_type, row.id)
