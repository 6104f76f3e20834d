# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Session reminder actor.

Called by APScheduler every ``REMINDER_INTERVAL_MINUTES``.

Actors:
    - send_session_reminders: Notifies members of sessions starting soon
"""

import logging
from typing import Any

import dramatiq

from src.infrastructure.background.broker import Priority, Queues, setup_dramatiq
from src.infrastructure.background.tasks.base import run_async, worker_session

setup_dramatiq()

logger = logging.getLogger(__name__)


@dramatiq.actor(
    queue_name=Queues.REMINDERS,
    max_retries=1,
    time_limit=300000,  # 5 minutes
    priority=Priority.LOW,
)
def send_session_reminders(hours_ahead: int = 24) -> dict[str, Any]:
    """Scheduler job: remind approved members of upcoming sessions.

    Args:
        hours_ahead: Lead time in hours.

    Returns:
        Run statistics.
    """
    logger.info("Session reminder job triggered: hours_ahead=%d", hours_ahead)

    async def _execute() -> dict[str, Any]:
        from src.domains.reminder import ReminderService

        async with worker_session() as session:
            result = await ReminderService(session).send_session_reminders(hours_ahead)
            return result.model_dump()

    try:
        result = run_async(_execute())
        logger.info(
            "Session reminder job completed: %d sessions, %d sent",
            result.get("sessions", 0),
            result.get("sent", 0),
        )
        return result
    except Exception as e:
        logger.error("Session reminder job failed: %s", e, exc_info=True)
        return {"status": "failed", "error": str(e)}


def get_reminder_actors() -> list:
    """Get all reminder actors."""
    return [send_session_reminders]
