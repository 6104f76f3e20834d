# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Background task actors for the seminar attendance service.

This module provides all Dramatiq actors organized by domain:
- Notifications: Inbox fan-out queued by domain services
- Reminders: Periodic upcoming-session reminders

Usage:
    from src.infrastructure.background.tasks import deliver_notifications

    deliver_notifications.send(["user-id"], "role_changed", {"role": "admin"})

Running Workers:
    dramatiq src.infrastructure.background.tasks --processes 1 --threads 4
"""

from src.infrastructure.background.tasks.base import run_async, worker_session
from src.infrastructure.background.tasks.notifications import (
    deliver_notifications,
    get_notification_actors,
)
from src.infrastructure.background.tasks.reminders import (
    get_reminder_actors,
    send_session_reminders,
)

__all__ = [
    # Notifications
    "deliver_notifications",
    # Reminders
    "send_session_reminders",
    # Utilities
    "get_all_actors",
    "run_async",
    "worker_session",
]


def get_all_actors() -> list:
    """Get all registered actors.

    Returns:
        List of all actor functions.
    """
    return [*get_notification_actors(), *get_reminder_actors()]
