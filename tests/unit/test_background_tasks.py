# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for Dramatiq actors and the APScheduler integration."""

import asyncio
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.infrastructure.background.broker import Queues, get_broker_manager
from src.infrastructure.background.scheduler import (
    REMINDER_JOB,
    PeriodicJob,
    PeriodicScheduler,
    start_scheduler,
    stop_scheduler,
)
from src.infrastructure.background.tasks import (
    deliver_notifications,
    get_all_actors,
    send_session_reminders,
)
from src.infrastructure.notifications import NotificationResult
from src.infrastructure.database.models import NotificationKind
from src.models.notification import ReminderRunResponse


def _fake_worker_session(session):
    @asynccontextmanager
    async def _session():
        yield session

    return _session


class TestBroker:
    """Tests for broker setup in test mode."""

    def test_stub_broker_in_test_mode(self):
        """Test DRAMATIQ_TEST_MODE selects the in-memory broker."""
        manager = get_broker_manager()
        manager.setup()
        stats = manager.queue_depths()

        assert stats["broker_type"] == "stub"
        assert set(stats["queues"]) <= set(Queues.ALL)

    def test_actors_bound_to_queues(self):
        """Test each actor routes to its own queue."""
        assert deliver_notifications.queue_name == Queues.NOTIFICATIONS
        assert send_session_reminders.queue_name == Queues.REMINDERS

    def test_all_actors_registered(self):
        """Test every actor is declared on its broker."""
        actors = get_all_actors()

        assert {a.actor_name for a in actors} == {"deliver_notifications", "send_session_reminders"}
        for actor in actors:
            assert actor.actor_name in actor.broker.get_declared_actors()


class TestDeliverNotifications:
    """Tests for the notification fan-out actor."""

    def test_delivers_batch(self):
        """Test the actor renders once and writes every recipient."""
        service = MagicMock()
        service.notify_bulk = AsyncMock(
            return_value=NotificationResult(
                kind=NotificationKind.ROLE_CHANGED, sent=["a", "b"]
            )
        )
        module = "src.infrastructure.background.tasks.notifications"

        with patch(f"{module}.worker_session", _fake_worker_session(MagicMock())), patch(
            f"{module}.NotificationService", return_value=service
        ), patch(f"{module}.run_async", asyncio.run):
            result = deliver_notifications(
                ["a", "b"], "role_changed", {"role": "admin"}, {"seminar_id": None}
            )

        assert result == {"kind": "role_changed", "sent": 2, "failed": 0}
        assert service.notify_bulk.call_args.args[1] == NotificationKind.ROLE_CHANGED

    def test_unknown_kind_is_dropped(self):
        """Test an unknown kind fails without touching the store."""
        module = "src.infrastructure.background.tasks.notifications"

        with patch(f"{module}.NotificationService") as service_cls:
            result = deliver_notifications(["a"], "carrier_pigeon", {})

        assert result["status"] == "failed"
        service_cls.assert_not_called()

    def test_unrenderable_message_is_dropped(self):
        """Test a missing template value is not retried."""
        service = MagicMock()
        service.notify_bulk = AsyncMock(side_effect=ValueError("Missing template value 'role'"))
        module = "src.infrastructure.background.tasks.notifications"

        with patch(f"{module}.worker_session", _fake_worker_session(MagicMock())), patch(
            f"{module}.NotificationService", return_value=service
        ), patch(f"{module}.run_async", asyncio.run):
            result = deliver_notifications(["a"], "role_changed", {})

        assert result["status"] == "failed"


class TestSendSessionReminders:
    """Tests for the reminder actor."""

    def test_runs_reminder_service(self):
        """Test the actor returns the run statistics."""
        reminder_service = MagicMock()
        reminder_service.send_session_reminders = AsyncMock(
            return_value=ReminderRunResponse(hours_ahead=24, sessions=2, sent=5, failed=0)
        )
        module = "src.infrastructure.background.tasks.reminders"

        with patch(f"{module}.worker_session", _fake_worker_session(MagicMock())), patch(
            "src.domains.reminder.ReminderService", return_value=reminder_service
        ), patch(f"{module}.run_async", asyncio.run):
            result = send_session_reminders(24)

        assert result == {"hours_ahead": 24, "sessions": 2, "sent": 5, "failed": 0}
        reminder_service.send_session_reminders.assert_called_once_with(24)


class TestScheduler:
    """Tests for periodic job registration."""

    @pytest.mark.asyncio
    async def test_registers_reminder_job(self):
        """Test the reminder job is registered with its lead time."""
        settings = MagicMock()
        settings.reminders.enabled = True
        settings.reminders.interval_minutes = 60
        settings.reminders.hours_ahead = 12

        with patch("src.infrastructure.background.scheduler.get_settings", return_value=settings):
            scheduler = await start_scheduler()

        try:
            assert scheduler.running
            jobs = scheduler.jobs()
            assert [j.name for j in jobs] == [REMINDER_JOB]
            assert jobs[0].actor_name == "send_session_reminders"
            assert jobs[0].kwargs == {"hours_ahead": 12}
        finally:
            await stop_scheduler()

    @pytest.mark.asyncio
    async def test_disabled_reminders_register_nothing(self):
        settings = MagicMock()
        settings.reminders.enabled = False

        with patch("src.infrastructure.background.scheduler.get_settings", return_value=settings):
            scheduler = await start_scheduler()

        try:
            assert scheduler.jobs() == []
        finally:
            await stop_scheduler()

    @pytest.mark.asyncio
    async def test_fire_enqueues_actor(self):
        """Test a tick sends the actor and records the run."""
        scheduler = PeriodicScheduler()
        job = scheduler.schedule(
            PeriodicJob(
                name=REMINDER_JOB,
                actor_name="send_session_reminders",
                interval_minutes=60,
                kwargs={"hours_ahead": 24},
            )
        )
        actor = MagicMock()

        with patch.object(scheduler, "_resolve_actor", return_value=actor):
            await scheduler.fire(job.name)

        actor.send.assert_called_once_with(hours_ahead=24)
        assert job.enqueued == 1
        assert job.last_enqueued_at is not None

    @pytest.mark.asyncio
    async def test_fire_counts_unknown_actor(self):
        """Test an unknown actor is counted as a failure."""
        scheduler = PeriodicScheduler()
        job = scheduler.schedule(PeriodicJob(name="bogus", actor_name="nope", interval_minutes=5))

        await scheduler.fire(job.name)

        assert job.failures == 1
        assert job.enqueued == 0

    @pytest.mark.asyncio
    async def test_fire_counts_broker_errors(self):
        scheduler = PeriodicScheduler()
        job = scheduler.schedule(
            PeriodicJob(name=REMINDER_JOB, actor_name="send_session_reminders", interval_minutes=60)
        )
        actor = MagicMock()
        actor.send.side_effect = ConnectionError("redis down")

        with patch.object(scheduler, "_resolve_actor", return_value=actor):
            await scheduler.fire(job.name)

        assert job.failures == 1
        assert job.last_enqueued_at is None
