# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Dramatiq broker, periodic scheduling and worker actors.

The API process calls ``setup_dramatiq`` and ``start_scheduler`` from its
lifespan. Workers load the actors with::

    dramatiq src.infrastructure.background.tasks --processes 1 --threads 4
"""

from src.infrastructure.background.broker import (
    BrokerManager,
    Priority,
    Queues,
    get_broker_manager,
    setup_dramatiq,
    shutdown_dramatiq,
)
from src.infrastructure.background.scheduler import (
    PeriodicJob,
    PeriodicScheduler,
    get_scheduler,
    start_scheduler,
    stop_scheduler,
)

__all__ = [
    "BrokerManager",
    "PeriodicJob",
    "PeriodicScheduler",
    "Priority",
    "Queues",
    "get_broker_manager",
    "get_scheduler",
    "setup_dramatiq",
    "shutdown_dramatiq",
    "start_scheduler",
    "stop_scheduler",
]
