# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Attendance recording and queries.

Attendance is one row per (user, session), written with an upsert so
concurrent check-ins collapse into a single row and the last write wins.
A missing row reads as ``absent``.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.domains.access import SeminarAccessService
from src.domains.errors import NotEnrolledError, SessionNotFoundError
from src.infrastructure.database.models import (
    Attendance,
    AttendanceStatus,
    Enrollment,
    EnrollmentStatus,
    NotificationKind,
    SeminarSession,
)
from src.infrastructure.notifications import (
    NotificationDispatcher,
    get_notification_dispatcher,
)
from src.models.attendance import (
    AttendanceResponse,
    MyAttendanceEntry,
    MyAttendanceResponse,
    SessionAttendanceEntry,
    SessionAttendanceResponse,
    SetAttendanceRequest,
)
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)

ATTENDED_STATUSES = frozenset({AttendanceStatus.PRESENT.value, AttendanceStatus.LATE.value})


async def upsert_attendance(
    db: AsyncSession,
    user_id: str,
    session_id: str,
    status: AttendanceStatus,
    checked_by: str,
    checked_at: datetime | None = None,
    notes: str | None = None,
) -> Attendance:
    """Insert or overwrite the attendance row for (user, session).

    Does not commit. Existing notes are kept when ``notes`` is None.

    Args:
        db: Async database session.
        user_id: Attending user.
        session_id: Session identifier.
        status: Attendance status.
        checked_by: User who recorded it (self or a manager).
        checked_at: Recording time, now by default.
        notes: Optional notes.

    Returns:
        The stored attendance row.
    """
    checked_at = checked_at or utc_now()
    stmt = insert(Attendance).values(
        user_id=str(user_id),
        session_id=str(session_id),
        status=status.value,
        checked_at=checked_at,
        checked_by=str(checked_by),
        notes=notes,
    )

    changes = {
        "status": stmt.excluded.status,
        "checked_at": stmt.excluded.checked_at,
        "checked_by": stmt.excluded.checked_by,
        "updated_at": func.now(),
    }
    if notes is not None:
        changes["notes"] = stmt.excluded.notes

    stmt = (
        stmt.on_conflict_do_update(
            index_elements=[Attendance.user_id, Attendance.session_id],
            set_=changes,
        )
        .returning(Attendance)
        .execution_options(populate_existing=True)
    )

    result = await db.execute(stmt)
    return result.scalar_one()


async def has_approved_enrollment(db: AsyncSession, user_id: str, seminar_id: str) -> bool:
    """Check that a user's enrollment in a seminar is exactly ``approved``."""
    result = await db.execute(
        select(Enrollment.status).where(
            Enrollment.user_id == str(user_id),
            Enrollment.seminar_id == str(seminar_id),
        )
    )
    return result.scalar_one_or_none() == EnrollmentStatus.APPROVED.value


def to_attendance_response(attendance: Attendance) -> AttendanceResponse:
    """Convert attendance model to response."""
    return AttendanceResponse(
        id=str(attendance.id),
        user_id=str(attendance.user_id),
        session_id=str(attendance.session_id),
        status=attendance.status,
        checked_at=attendance.checked_at,
        checked_by=str(attendance.checked_by) if attendance.checked_by else None,
        notes=attendance.notes,
    )


class AttendanceService:
    """Manager attendance marking and attendance views.

    Attributes:
        db: Async database session.
        access: Seminar authorization checks.
        dispatcher: Notification dispatcher.
    """

    def __init__(
        self,
        db: AsyncSession,
        dispatcher: NotificationDispatcher | None = None,
    ) -> None:
        self.db = db
        self.access = SeminarAccessService(db)
        self.dispatcher = dispatcher or get_notification_dispatcher()

    async def set_attendance(
        self,
        session_id: str,
        request: SetAttendanceRequest,
        actor_id: str,
    ) -> AttendanceResponse:
        """Mark a member's attendance without a credential.

        Args:
            session_id: Session identifier.
            request: Target user, status and optional notes.
            actor_id: Acting user, must manage the seminar.

        Returns:
            The stored attendance.

        Raises:
            SessionNotFoundError: If the session does not exist.
            PermissionDeniedError: If the actor is neither owner nor admin.
            NotEnrolledError: If the target user is not an approved member.
        """
        session = await self._get_session(session_id)
        await self.access.require_manager(actor_id, session.seminar_id)

        if not await has_approved_enrollment(self.db, request.user_id, session.seminar_id):
            raise NotEnrolledError("User is not an approved member of this seminar")

        status = AttendanceStatus(request.status)
        attendance = await upsert_attendance(
            self.db,
            user_id=request.user_id,
            session_id=session.id,
            status=status,
            checked_by=actor_id,
            notes=request.notes,
        )
        response = to_attendance_response(attendance)
        await self.db.commit()

        logger.info(
            "Attendance set: user=%s, session=%s, status=%s, by=%s",
            request.user_id,
            session.id,
            status.value,
            actor_id,
        )

        self.dispatcher.dispatch(
            [request.user_id],
            NotificationKind.ATTENDANCE_MARKED,
            {"session_title": session.title, "status": status.value},
            seminar_id=session.seminar_id,
            session_id=session.id,
        )

        return response

    async def get_session_attendance(
        self,
        session_id: str,
        actor_id: str,
    ) -> SessionAttendanceResponse:
        """List every approved member of the session's seminar with their status.

        Members without a row are reported as ``absent``.

        Raises:
            SessionNotFoundError: If the session does not exist.
            PermissionDeniedError: If the actor is neither owner nor admin.
        """
        session = await self._get_session(session_id)
        await self.access.require_manager(actor_id, session.seminar_id)

        enrollments_result = await self.db.execute(
            select(Enrollment)
            .options(selectinload(Enrollment.user))
            .where(
                Enrollment.seminar_id == session.seminar_id,
                Enrollment.status == EnrollmentStatus.APPROVED.value,
            )
            .order_by(Enrollment.applied_at)
        )
        enrollments = enrollments_result.scalars().all()

        attendance_result = await self.db.execute(
            select(Attendance).where(Attendance.session_id == session.id)
        )
        by_user = {a.user_id: a for a in attendance_result.scalars().all()}

        items = []
        for enrollment in enrollments:
            record = by_user.get(enrollment.user_id)
            user = enrollment.user
            items.append(
                SessionAttendanceEntry(
                    user_id=str(enrollment.user_id),
                    user_name=user.name if user else None,
                    user_email=user.email if user else None,
                    status=record.status if record else AttendanceStatus.ABSENT.value,
                    checked_at=record.checked_at if record else None,
                    checked_by=str(record.checked_by) if record and record.checked_by else None,
                    notes=record.notes if record else None,
                )
            )

        present = sum(1 for item in items if item.status == AttendanceStatus.PRESENT.value)
        return SessionAttendanceResponse(
            session_id=str(session.id),
            seminar_id=str(session.seminar_id),
            items=items,
            present=present,
            total=len(items),
        )

    async def get_my_attendance(
        self,
        seminar_id: str,
        requester_id: str,
    ) -> MyAttendanceResponse:
        """The requester's status for every session of a seminar.

        Raises:
            SeminarNotFoundError: If the seminar does not exist.
        """
        await self.access.get_seminar(seminar_id)

        sessions_result = await self.db.execute(
            select(SeminarSession)
            .where(SeminarSession.seminar_id == str(seminar_id))
            .order_by(SeminarSession.session_number)
        )
        sessions = sessions_result.scalars().all()

        attendance_result = await self.db.execute(
            select(Attendance)
            .join(SeminarSession, SeminarSession.id == Attendance.session_id)
            .where(
                SeminarSession.seminar_id == str(seminar_id),
                Attendance.user_id == str(requester_id),
            )
        )
        by_session = {a.session_id: a for a in attendance_result.scalars().all()}

        items = []
        for session in sessions:
            record = by_session.get(session.id)
            items.append(
                MyAttendanceEntry(
                    session_id=str(session.id),
                    session_number=session.session_number,
                    title=session.title,
                    date=session.date,
                    status=record.status if record else AttendanceStatus.ABSENT.value,
                    checked_at=record.checked_at if record else None,
                )
            )

        attended = sum(1 for item in items if item.status in ATTENDED_STATUSES)
        return MyAttendanceResponse(
            seminar_id=str(seminar_id),
            items=items,
            attended=attended,
            total=len(items),
        )

    async def _get_session(self, session_id: str) -> SeminarSession:
        result = await self.db.execute(
            select(SeminarSession).where(SeminarSession.id == str(session_id))
        )
        session = result.scalar_one_or_none()
        if session is None:
            raise SessionNotFoundError(f"Session {session_id} not found")
        return session
