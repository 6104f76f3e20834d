# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification delivery actor.

Actors:
    - deliver_notifications: Writes one inbox row per recipient
"""

import logging
from typing import Any

import dramatiq

from src.infrastructure.background.broker import Priority, Queues, setup_dramatiq
from src.infrastructure.background.tasks.base import run_async, worker_session
from src.infrastructure.database.models.notification import NotificationKind
from src.infrastructure.notifications.service import NotificationService

setup_dramatiq()

logger = logging.getLogger(__name__)


@dramatiq.actor(
    queue_name=Queues.NOTIFICATIONS,
    max_retries=3,
    time_limit=120000,  # 2 minutes
    priority=Priority.NORMAL,
)
def deliver_notifications(
    user_ids: list[str],
    kind: str,
    context: dict[str, Any],
    refs: dict[str, str | None] | None = None,
) -> dict[str, Any]:
    """Write notifications for a batch of recipients.

    Each row is inserted in its own savepoint, so one failed insert does
    not undo the others. A message that cannot be rendered is dropped
    without retry.

    Args:
        user_ids: Recipient user IDs.
        kind: Notification kind value.
        context: Template values.
        refs: Optional seminar_id, session_id and enrollment_id.

    Returns:
        Counts of written and failed rows.
    """
    refs = refs or {}

    try:
        notification_kind = NotificationKind(kind)
    except ValueError:
        logger.error("Dropping notifications with unknown kind: %s", kind)
        return {"status": "failed", "error": f"unknown kind {kind}"}

    async def _deliver() -> dict[str, Any]:
        async with worker_session() as session:
            service = NotificationService(session)
            result = await service.notify_bulk(
                user_ids,
                notification_kind,
                context,
                seminar_id=refs.get("seminar_id"),
                session_id=refs.get("session_id"),
                enrollment_id=refs.get("enrollment_id"),
            )
            return result.to_dict()

    try:
        return run_async(_deliver())
    except ValueError as e:
        logger.error(
            "Dropping notifications that cannot be rendered: kind=%s: %s",
            kind,
            str(e),
        )
        return {"status": "failed", "error": str(e)}


def get_notification_actors() -> list:
    """Get all notification actors."""
    return [deliver_notifications]
