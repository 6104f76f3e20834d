# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for attendance recording and views."""

from datetime import datetime, timezone
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from sqlalchemy.dialects import postgresql

from src.domains.attendance import AttendanceService, upsert_attendance
from src.domains.errors import NotEnrolledError, PermissionDeniedError
from src.infrastructure.database.models import AttendanceStatus, NotificationKind
from src.models.attendance import SetAttendanceRequest


@pytest.fixture
def attendance_service(mock_db, mock_dispatcher):
    """Create attendance service with mock database."""
    return AttendanceService(db=mock_db, dispatcher=mock_dispatcher)


def _member(user_id, name):
    enrollment = MagicMock()
    enrollment.user_id = user_id
    enrollment.user.name = name
    enrollment.user.email = f"{name.lower()}@example.com"
    return enrollment


class TestUpsertAttendance:
    """Tests for the single-row-per-pair upsert."""

    @pytest.mark.asyncio
    async def test_upsert_targets_user_session_pair(self, mock_db, make_result, make_attendance):
        """Test the insert resolves conflicts on (user_id, session_id)."""
        user_id, session_id = str(uuid4()), str(uuid4())
        row = make_attendance(user_id, session_id)
        mock_db.execute.return_value = make_result(scalar=row)

        result = await upsert_attendance(
            mock_db,
            user_id=user_id,
            session_id=session_id,
            status=AttendanceStatus.PRESENT,
            checked_by=user_id,
        )

        assert result is row
        sql = str(mock_db.execute.call_args.args[0].compile(dialect=postgresql.dialect()))
        assert "ON CONFLICT (user_id, session_id) DO UPDATE" in sql
        assert "notes = excluded.notes" not in sql
        mock_db.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_upsert_overwrites_notes_when_given(self, mock_db, make_result, make_attendance):
        """Test notes are replaced only when provided."""
        user_id, session_id = str(uuid4()), str(uuid4())
        mock_db.execute.return_value = make_result(scalar=make_attendance(user_id, session_id))

        await upsert_attendance(
            mock_db,
            user_id=user_id,
            session_id=session_id,
            status=AttendanceStatus.LATE,
            checked_by=str(uuid4()),
            notes="Arrived 20 minutes late",
        )

        sql = str(mock_db.execute.call_args.args[0].compile(dialect=postgresql.dialect()))
        assert "notes = excluded.notes" in sql


class TestSetAttendance:
    """Tests for manager attendance marking."""

    @pytest.mark.asyncio
    async def test_owner_marks_late(
        self,
        attendance_service,
        mock_db,
        mock_dispatcher,
        make_result,
        make_attendance,
        sample_session,
        sample_seminar,
        owner_id,
        member_id,
    ):
        """Test the owner records a status and the member is notified."""
        row = make_attendance(member_id, sample_session.id, status="late", checked_by=owner_id)
        mock_db.execute.side_effect = [
            make_result(scalar=sample_session),
            make_result(scalar=sample_seminar),
            make_result(scalar="approved"),
            make_result(scalar=row),
        ]

        result = await attendance_service.set_attendance(
            sample_session.id,
            SetAttendanceRequest(user_id=member_id, status="late"),
            owner_id,
        )

        assert result.status == "late"
        assert result.checked_by == owner_id
        mock_db.commit.assert_called_once()
        mock_dispatcher.dispatch.assert_called_once_with(
            [member_id],
            NotificationKind.ATTENDANCE_MARKED,
            {"session_title": sample_session.title, "status": "late"},
            seminar_id=sample_session.seminar_id,
            session_id=sample_session.id,
        )

    @pytest.mark.asyncio
    async def test_target_must_be_approved(
        self,
        attendance_service,
        mock_db,
        mock_dispatcher,
        make_result,
        sample_session,
        sample_seminar,
        owner_id,
        member_id,
    ):
        """Test marking a user without an approved enrollment fails."""
        mock_db.execute.side_effect = [
            make_result(scalar=sample_session),
            make_result(scalar=sample_seminar),
            make_result(scalar=None),
        ]

        with pytest.raises(NotEnrolledError):
            await attendance_service.set_attendance(
                sample_session.id,
                SetAttendanceRequest(user_id=member_id, status="present"),
                owner_id,
            )

        mock_db.commit.assert_not_called()
        mock_dispatcher.dispatch.assert_not_called()

    @pytest.mark.asyncio
    async def test_member_cannot_mark(
        self, attendance_service, mock_db, make_result, sample_session, sample_seminar, member_id
    ):
        """Test members cannot mark attendance for others."""
        mock_db.execute.side_effect = [
            make_result(scalar=sample_session),
            make_result(scalar=sample_seminar),
            make_result(scalar="member"),
        ]

        with pytest.raises(PermissionDeniedError):
            await attendance_service.set_attendance(
                sample_session.id,
                SetAttendanceRequest(user_id=str(uuid4()), status="present"),
                member_id,
            )


class TestAttendanceViews:
    """Tests for roster and personal views."""

    @pytest.mark.asyncio
    async def test_session_roster_defaults_to_absent(
        self,
        attendance_service,
        mock_db,
        make_result,
        make_attendance,
        sample_session,
        sample_seminar,
        owner_id,
    ):
        """Test members without a row read as absent."""
        alice, bob = str(uuid4()), str(uuid4())
        mock_db.execute.side_effect = [
            make_result(scalar=sample_session),
            make_result(scalar=sample_seminar),
            make_result(scalars=[_member(alice, "Alice"), _member(bob, "Bob")]),
            make_result(scalars=[make_attendance(alice, sample_session.id)]),
        ]

        result = await attendance_service.get_session_attendance(sample_session.id, owner_id)

        statuses = {item.user_id: item.status for item in result.items}
        assert statuses == {alice: "present", bob: "absent"}
        assert result.present == 1
        assert result.total == 2

    @pytest.mark.asyncio
    async def test_my_attendance_counts_present_and_late(
        self,
        attendance_service,
        mock_db,
        make_result,
        make_attendance,
        sample_seminar,
        member_id,
    ):
        """Test late counts as attended and missing rows as absent."""
        sessions = []
        for number in (1, 2, 3):
            session = MagicMock()
            session.id = str(uuid4())
            session.session_number = number
            session.title = f"Session {number}"
            session.date = datetime(2025, 1, number * 7, tzinfo=timezone.utc)
            sessions.append(session)

        mock_db.execute.side_effect = [
            make_result(scalar=sample_seminar),
            make_result(scalars=sessions),
            make_result(
                scalars=[
                    make_attendance(member_id, sessions[0].id, status="present"),
                    make_attendance(member_id, sessions[1].id, status="late"),
                ]
            ),
        ]

        result = await attendance_service.get_my_attendance(sample_seminar.id, member_id)

        assert [item.status for item in result.items] == ["present", "late", "absent"]
        assert result.attended == 2
        assert result.total == 3
