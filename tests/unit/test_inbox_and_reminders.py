# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the notification inbox and session reminders."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from src.domains.errors import BadRequestError, NotFoundError, PermissionDeniedError
from src.domains.notification import InboxService
from src.domains.reminder import ReminderService, format_start, reminder_window
from src.infrastructure.database.models import NotificationKind
from src.infrastructure.notifications import NotificationResult

NOW = datetime(2025, 5, 1, 9, 0, tzinfo=timezone.utc)


def _notification(user_id, is_read=False):
    notification = MagicMock()
    notification.id = str(uuid4())
    notification.user_id = user_id
    notification.kind = "announcement"
    notification.title = "New announcement"
    notification.message = "Hello: world..."
    notification.seminar_id = None
    notification.session_id = None
    notification.enrollment_id = None
    notification.is_read = is_read
    notification.created_at = NOW
    return notification


class TestInbox:
    """Tests for inbox reads and read-state updates."""

    @pytest.mark.asyncio
    async def test_list_with_unread_count(self, mock_db, make_result, member_id):
        """Test entries are returned with the unread total."""
        mock_db.execute.side_effect = [
            make_result(scalars=[_notification(member_id), _notification(member_id, True)]),
            make_result(scalar=1),
        ]

        result = await InboxService(mock_db).list_notifications(member_id)

        assert result.total == 2
        assert result.unread == 1

    @pytest.mark.asyncio
    async def test_mark_read(self, mock_db, make_result, member_id):
        """Test an unread entry is marked and committed."""
        notification = _notification(member_id)
        mock_db.execute.return_value = make_result(scalar=notification)

        result = await InboxService(mock_db).mark_read(notification.id, member_id)

        assert result.is_read is True
        mock_db.commit.assert_called_once()

    @pytest.mark.asyncio
    async def test_mark_read_of_someone_else(self, mock_db, make_result, member_id):
        """Test another user's notification reads as not found."""
        mock_db.execute.return_value = make_result(scalar=None)

        with pytest.raises(NotFoundError):
            await InboxService(mock_db).mark_read(str(uuid4()), member_id)

    @pytest.mark.asyncio
    async def test_mark_all_read(self, mock_db, make_result, member_id):
        """Test the number of updated rows is reported."""
        mock_db.execute.return_value = make_result(rowcount=4)

        result = await InboxService(mock_db).mark_all_read(member_id)

        assert result.updated == 4
        mock_db.commit.assert_called_once()


class TestReminderWindow:
    """Tests for the reminder window."""

    def test_window_is_the_hour_before_lead_time(self):
        """Test 24 hours ahead covers [now+23h, now+24h)."""
        start, end = reminder_window(24, NOW)

        assert start == NOW + timedelta(hours=23)
        assert end == NOW + timedelta(hours=24)

    def test_one_hour_ahead_starts_now(self):
        """Test the smallest lead time covers the next hour."""
        assert reminder_window(1, NOW) == (NOW, NOW + timedelta(hours=1))

    def test_lead_time_must_be_positive(self):
        """Test a zero lead time is rejected."""
        with pytest.raises(BadRequestError):
            reminder_window(0, NOW)

    def test_format_start(self):
        """Test start times render in UTC."""
        assert format_start(NOW) == "2025-05-01 09:00 UTC"


class TestReminderService:
    """Tests for finding and notifying due sessions."""

    def _due_session(self, sample_seminar):
        session = MagicMock()
        session.id = str(uuid4())
        session.seminar_id = sample_seminar.id
        session.seminar = sample_seminar
        session.title = "Consensus"
        session.date = NOW + timedelta(hours=23, minutes=30)
        return session

    @pytest.mark.asyncio
    async def test_send_notifies_approved_members(
        self, mock_db, make_result, sample_seminar, member_id
    ):
        """Test each due session's members get one reminder."""
        session = self._due_session(sample_seminar)
        mock_db.execute.side_effect = [
            make_result(scalars=[session]),
            make_result(scalars=[member_id]),
        ]
        notifications = MagicMock()
        notifications.notify_bulk = AsyncMock(
            return_value=NotificationResult(kind=NotificationKind.SESSION_REMINDER, sent=[member_id])
        )

        result = await ReminderService(mock_db, notifications).send_session_reminders(24, now=NOW)

        assert result.sessions == 1
        assert result.sent == 1
        assert result.failed == 0
        args = notifications.notify_bulk.call_args
        assert args.args[0] == [member_id]
        assert args.args[1] == NotificationKind.SESSION_REMINDER
        assert args.args[2] == {
            "session_title": "Consensus",
            "seminar_title": sample_seminar.title,
            "starts_at": "2025-05-02 08:30 UTC",
        }
        mock_db.commit.assert_called_once()

    @pytest.mark.asyncio
    async def test_sessions_without_members_are_skipped(
        self, mock_db, make_result, sample_seminar
    ):
        """Test no fan-out happens for an empty audience."""
        mock_db.execute.side_effect = [
            make_result(scalars=[self._due_session(sample_seminar)]),
            make_result(scalars=[]),
        ]
        notifications = MagicMock()
        notifications.notify_bulk = AsyncMock()

        result = await ReminderService(mock_db, notifications).send_session_reminders(24, now=NOW)

        assert result.sessions == 1
        assert result.sent == 0
        notifications.notify_bulk.assert_not_called()

    @pytest.mark.asyncio
    async def test_preview_requires_admin_when_actor_given(self, mock_db, make_result):
        """Test the manual trigger is admin only."""
        mock_db.execute.return_value = make_result(scalar="member")

        with pytest.raises(PermissionDeniedError):
            await ReminderService(mock_db, MagicMock()).find_due_sessions(
                24, now=NOW, actor_id=str(uuid4())
            )
