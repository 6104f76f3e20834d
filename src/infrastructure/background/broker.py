# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Dramatiq broker configuration.

Redis backs the broker in every environment except tests, where
``DRAMATIQ_TEST_MODE=true`` selects an in-memory StubBroker.

Example:
    from src.infrastructure.background.broker import setup_dramatiq

    broker = setup_dramatiq()
"""

import logging
import os
from typing import Any

import dramatiq
import redis
from dramatiq.brokers.redis import RedisBroker
from dramatiq.brokers.stub import StubBroker

from src.core.config import get_settings

logger = logging.getLogger(__name__)


class Queues:
    """Queue names, one per actor family."""

    NOTIFICATIONS = "notifications"
    REMINDERS = "reminders"

    ALL = (NOTIFICATIONS, REMINDERS)


class Priority:
    """Actor priorities (lower runs first)."""

    NORMAL = 3
    LOW = 5


def is_test_mode() -> bool:
    return os.getenv("DRAMATIQ_TEST_MODE", "false").lower() == "true"


def build_broker() -> dramatiq.Broker:
    """Create the broker for the current environment."""
    if is_test_mode():
        broker = StubBroker()
        broker.emit_after("process_boot")
        return broker

    return RedisBroker(url=get_settings().redis.url)


class BrokerManager:
    """Holds the process-wide broker between setup and shutdown."""

    def __init__(self) -> None:
        self._broker: dramatiq.Broker | None = None

    @property
    def broker(self) -> dramatiq.Broker:
        if self._broker is None:
            raise RuntimeError("Broker not initialized. Call setup() first.")
        return self._broker

    def setup(self) -> dramatiq.Broker:
        """Create and install the broker once; later calls return it."""
        if self._broker is None:
            self._broker = build_broker()
            dramatiq.set_broker(self._broker)
            logger.info("Dramatiq broker ready: %s", type(self._broker).__name__)
        return self._broker

    def shutdown(self) -> None:
        if self._broker is None:
            return
        self._broker.close()
        self._broker = None
        logger.info("Dramatiq broker closed")

    def queue_depths(self) -> dict[str, Any]:
        """Pending message counts per queue, for readiness reporting."""
        if self._broker is None:
            return {"status": "not_initialized"}

        if isinstance(self._broker, StubBroker):
            return {
                "broker_type": "stub",
                "status": "healthy",
                "queues": {
                    name: queue.qsize()
                    for name, queue in self._broker.queues.items()
                    if name in Queues.ALL
                },
            }

        try:
            depths = {name: self._broker.client.llen(f"dramatiq:{name}") for name in Queues.ALL}
        except redis.RedisError as e:
            logger.warning("Could not read queue depths: %s", e)
            return {"broker_type": "redis", "status": "error", "error": str(e)}

        return {"broker_type": "redis", "status": "healthy", "queues": depths}


_broker_manager: BrokerManager | None = None


def get_broker_manager() -> BrokerManager:
    global _broker_manager
    if _broker_manager is None:
        _broker_manager = BrokerManager()
    return _broker_manager


def setup_dramatiq() -> dramatiq.Broker:
    """Install the broker.

    Called at import time by every task module so actors bind to the
    configured broker.
    """
    return get_broker_manager().setup()


def shutdown_dramatiq() -> None:
    global _broker_manager
    if _broker_manager is not None:
        _broker_manager.shutdown()
        _broker_manager = None
