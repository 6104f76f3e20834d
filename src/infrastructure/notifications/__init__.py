# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""In-app notification system.

Key Components:
- NotificationService: renders templates and writes inbox rows
- NotificationDispatcher: enqueues fan-out on the background worker
- InAppChannel: per-recipient inbox write in its own savepoint

Usage:
    from src.infrastructure.notifications import get_notification_dispatcher

    get_notification_dispatcher().dispatch(
        [user_id],
        NotificationKind.ENROLLMENT_APPROVED,
        {"seminar_title": "Deep Learning Reading Group"},
        seminar_id=seminar_id,
    )
"""

from src.infrastructure.notifications.channels import (
    BaseChannel,
    ChannelResult,
    ChannelType,
    DeliveryStatus,
    InAppChannel,
    NotificationPayload,
)
from src.infrastructure.notifications.dispatcher import (
    NotificationDispatcher,
    get_notification_dispatcher,
)
from src.infrastructure.notifications.service import NotificationResult, NotificationService
from src.infrastructure.notifications.templates import (
    NOTIFICATION_TEMPLATES,
    render_notification,
)

__all__ = [
    # Service
    "NotificationService",
    "NotificationResult",
    # Dispatch
    "NotificationDispatcher",
    "get_notification_dispatcher",
    # Templates
    "NOTIFICATION_TEMPLATES",
    "render_notification",
    # Channels
    "BaseChannel",
    "ChannelResult",
    "ChannelType",
    "DeliveryStatus",
    "NotificationPayload",
    "InAppChannel",
]
