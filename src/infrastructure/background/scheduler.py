# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Periodic job scheduling.

APScheduler ticks inside the API process. A tick only sends a message to
the named Dramatiq actor, so the work runs on a worker and a slow job
never blocks request handling.

Example:
    from src.infrastructure.background.scheduler import start_scheduler

    scheduler = await start_scheduler()
    [job.name for job in scheduler.jobs()]  # ["session-reminders"]
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import dramatiq
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from src.core.config import get_settings
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)

REMINDER_JOB = "session-reminders"


@dataclass
class PeriodicJob:
    """An actor enqueued every ``interval_minutes``.

    Attributes:
        name: Unique job name, also the APScheduler job id.
        actor_name: Attribute of ``src.infrastructure.background.tasks``.
        interval_minutes: Minutes between ticks.
        kwargs: Keyword arguments sent with every message.
        enqueued: Messages sent so far.
        failures: Ticks that could not send.
        last_enqueued_at: Time of the last successful send.
    """

    name: str
    actor_name: str
    interval_minutes: int
    kwargs: dict[str, Any] = field(default_factory=dict)
    enqueued: int = 0
    failures: int = 0
    last_enqueued_at: datetime | None = None


class PeriodicScheduler:
    """Owns the APScheduler instance and the registered jobs."""

    def __init__(self) -> None:
        self._aps: AsyncIOScheduler | None = None
        self._jobs: dict[str, PeriodicJob] = {}

    @property
    def running(self) -> bool:
        return self._aps is not None

    def jobs(self) -> list[PeriodicJob]:
        return list(self._jobs.values())

    def schedule(self, job: PeriodicJob) -> PeriodicJob:
        """Register a job, replacing any job with the same name."""
        self._jobs[job.name] = job
        if self._aps is not None:
            self._add_to_aps(job)

        logger.info(
            "Scheduled %s: %s every %d minutes",
            job.name,
            job.actor_name,
            job.interval_minutes,
        )
        return job

    def _add_to_aps(self, job: PeriodicJob) -> None:
        self._aps.add_job(  # type: ignore[union-attr]
            self.fire,
            trigger=IntervalTrigger(minutes=job.interval_minutes),
            args=[job.name],
            id=job.name,
            name=job.name,
            replace_existing=True,
        )

    def _resolve_actor(self, actor_name: str) -> dramatiq.Actor | None:
        # Lazy so the API process only loads actors once a job fires
        from src.infrastructure.background import tasks

        return getattr(tasks, actor_name, None)

    async def fire(self, job_name: str) -> None:
        """Send one message for a job. Failures are counted, never raised."""
        job = self._jobs.get(job_name)
        if job is None:
            return

        actor = self._resolve_actor(job.actor_name)
        if actor is None:
            job.failures += 1
            logger.error("Job %s refers to unknown actor %s", job.name, job.actor_name)
            return

        try:
            actor.send(**job.kwargs)
        except Exception as e:
            job.failures += 1
            logger.error("Job %s could not enqueue: %s", job.name, e, exc_info=True)
            return

        job.enqueued += 1
        job.last_enqueued_at = utc_now()
        logger.debug("Job %s enqueued", job.name)

    async def start(self) -> None:
        if self._aps is not None:
            return

        self._aps = AsyncIOScheduler(timezone="UTC")
        for job in self._jobs.values():
            self._add_to_aps(job)
        self._aps.start()
        logger.info("Scheduler started with %d jobs", len(self._jobs))

    async def stop(self) -> None:
        if self._aps is None:
            return

        self._aps.shutdown(wait=False)
        self._aps = None
        logger.info("Scheduler stopped")


_scheduler: PeriodicScheduler | None = None


def get_scheduler() -> PeriodicScheduler:
    """Get the process-wide scheduler."""
    global _scheduler
    if _scheduler is None:
        _scheduler = PeriodicScheduler()
    return _scheduler


async def start_scheduler() -> PeriodicScheduler:
    """Start the scheduler with the session reminder job when enabled."""
    settings = get_settings()
    scheduler = get_scheduler()

    if settings.reminders.enabled:
        scheduler.schedule(
            PeriodicJob(
                name=REMINDER_JOB,
                actor_name="send_session_reminders",
                interval_minutes=settings.reminders.interval_minutes,
                kwargs={"hours_ahead": settings.reminders.hours_ahead},
            )
        )
    else:
        logger.info("Session reminders disabled")

    await scheduler.start()
    return scheduler


async def stop_scheduler() -> None:
    """Stop and discard the process-wide scheduler."""
    global _scheduler
    if _scheduler is not None:
        await _scheduler.stop()
        _scheduler = None
