# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Channel contract for notification delivery.

A channel takes one rendered notification for one recipient and reports
whether it was delivered. Channels never raise for delivery failures.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

from src.infrastructure.database.models.notification import NotificationKind


class ChannelType(str, Enum):
    IN_APP = "in_app"


class DeliveryStatus(str, Enum):
    SENT = "sent"
    FAILED = "failed"


@dataclass(frozen=True)
class NotificationPayload:
    """A rendered notification for a single recipient.

    The optional ids link the inbox entry back to what it is about.
    """

    kind: NotificationKind
    title: str
    message: str
    recipient_id: str
    seminar_id: str | None = None
    session_id: str | None = None
    enrollment_id: str | None = None


@dataclass(frozen=True)
class ChannelResult:
    """Outcome of one delivery attempt."""

    channel: ChannelType
    status: DeliveryStatus
    message_id: str | None = None
    error_message: str | None = None

    @classmethod
    def sent(cls, channel: ChannelType, message_id: str) -> "ChannelResult":
        return cls(channel=channel, status=DeliveryStatus.SENT, message_id=message_id)

    @classmethod
    def failed(cls, channel: ChannelType, error_message: str) -> "ChannelResult":
        return cls(channel=channel, status=DeliveryStatus.FAILED, error_message=error_message)

    @property
    def ok(self) -> bool:
        return self.status is DeliveryStatus.SENT


class BaseChannel(ABC):
    """A delivery medium."""

    channel_type: ChannelType

    def __init__(self) -> None:
        self.logger = logging.getLogger(f"{__name__}.{type(self).__name__}")

    @abstractmethod
    async def send(self, payload: NotificationPayload) -> ChannelResult:
        """Deliver ``payload`` and report the outcome."""
