# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification domain: the user's inbox."""

from src.domains.notification.service import InboxService, NotificationNotFoundError

__all__ = ["InboxService", "NotificationNotFoundError"]
