# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification service writing inbox rows.

Renders the template for a notification kind once and writes one inbox
row per recipient. Delivery is best-effort: a recipient whose insert
fails is counted and logged, the rest are still written.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.models.notification import NotificationKind
from src.infrastructure.notifications.channels import InAppChannel, NotificationPayload
from src.infrastructure.notifications.templates import render_notification

logger = logging.getLogger(__name__)


@dataclass
class NotificationResult:
    """Outcome of a fan-out.

    Attributes:
        kind: Notification kind sent.
        sent: Recipient IDs whose row was written.
        failed: Recipient IDs whose insert failed.
    """

    kind: NotificationKind
    sent: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "kind": self.kind.value,
            "sent": len(self.sent),
            "failed": len(self.failed),
        }


class NotificationService:
    """Writes notifications into the in-app inbox.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize the notification service.

        Args:
            db: Async database session.
        """
        self.db = db
        self._in_app = InAppChannel(db)

    async def notify(
        self,
        user_id: str,
        kind: NotificationKind,
        context: Mapping[str, Any],
        seminar_id: str | None = None,
        session_id: str | None = None,
        enrollment_id: str | None = None,
    ) -> NotificationResult:
        """Notify a single user.

        Args:
            user_id: Recipient user ID.
            kind: Notification kind.
            context: Template values.
            seminar_id: Related seminar.
            session_id: Related session.
            enrollment_id: Related enrollment.

        Returns:
            NotificationResult for the one recipient.
        """
        return await self.notify_bulk(
            [user_id],
            kind,
            context,
            seminar_id=seminar_id,
            session_id=session_id,
            enrollment_id=enrollment_id,
        )

    async def notify_bulk(
        self,
        user_ids: Iterable[str],
        kind: NotificationKind,
        context: Mapping[str, Any],
        seminar_id: str | None = None,
        session_id: str | None = None,
        enrollment_id: str | None = None,
    ) -> NotificationResult:
        """Notify many users with the same rendered message.

        Duplicate recipient IDs are written once.

        Args:
            user_ids: Recipient user IDs.
            kind: Notification kind.
            context: Template values.
            seminar_id: Related seminar.
            session_id: Related session.
            enrollment_id: Related enrollment.

        Returns:
            NotificationResult listing written and failed recipients.

        Raises:
            ValueError: If the context does not fill the kind's template.
        """
        title, message = render_notification(kind, context)
        result = NotificationResult(kind=kind)

        for user_id in dict.fromkeys(str(u) for u in user_ids):
            channel_result = await self._in_app.send(
                NotificationPayload(
                    kind=kind,
                    title=title,
                    message=message,
                    recipient_id=user_id,
                    seminar_id=seminar_id,
                    session_id=session_id,
                    enrollment_id=enrollment_id,
                )
            )
            if channel_result.ok:
                result.sent.append(user_id)
            else:
                result.failed.append(user_id)

        if result.failed:
            logger.warning(
                "Notification fan-out partially failed: kind=%s, sent=%d, failed=%d",
                kind.value,
                len(result.sent),
                len(result.failed),
            )
        else:
            logger.info(
                "Notifications written: kind=%s, recipients=%d",
                kind.value,
                len(result.sent),
            )

        return result
