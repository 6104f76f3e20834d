# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Fire-and-forget notification dispatch.

Domain services call ``dispatch`` after their transaction commits. The
message is handed to the ``deliver_notifications`` Dramatiq actor; if the
enqueue itself fails the error is logged and swallowed so the triggering
operation still succeeds.
"""

import logging
from typing import Any, Iterable, Mapping

from src.infrastructure.database.models.notification import NotificationKind

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Enqueues notification fan-out on the background worker."""

    def dispatch(
        self,
        user_ids: Iterable[str],
        kind: NotificationKind,
        context: Mapping[str, Any],
        seminar_id: str | None = None,
        session_id: str | None = None,
        enrollment_id: str | None = None,
    ) -> bool:
        """Queue notifications for delivery.

        Args:
            user_ids: Recipient user IDs.
            kind: Notification kind.
            context: JSON-serializable template values.
            seminar_id: Related seminar.
            session_id: Related session.
            enrollment_id: Related enrollment.

        Returns:
            True if the message was enqueued, False otherwise.
        """
        recipients = [str(u) for u in user_ids]
        if not recipients:
            return False

        refs = {
            "seminar_id": seminar_id,
            "session_id": session_id,
            "enrollment_id": enrollment_id,
        }

        try:
            # Imported lazily: loading the task module binds actors to the broker
            from src.infrastructure.background.tasks.notifications import (
                deliver_notifications,
            )

            deliver_notifications.send(recipients, kind.value, dict(context), refs)
        except Exception as e:
            logger.warning(
                "Failed to enqueue notifications: kind=%s, recipients=%d: %s",
                kind.value,
                len(recipients),
                str(e),
                exc_info=True,
            )
            return False

        logger.debug(
            "Notifications enqueued: kind=%s, recipients=%d",
            kind.value,
            len(recipients),
        )
        return True


_dispatcher: NotificationDispatcher | None = None


def get_notification_dispatcher() -> NotificationDispatcher:
    """Get the process-wide dispatcher."""
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = NotificationDispatcher()
    return _dispatcher
