# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Session service for managing a seminar's scheduled meetings.

Every create, date change and delete recomputes the seminar's date span
before the transaction commits, so readers never see a span that
disagrees with the committed sessions.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.access import SeminarAccessService
from src.domains.errors import SessionNotFoundError
from src.domains.seminar import SeminarDateAggregator
from src.infrastructure.database.models import (
    Enrollment,
    EnrollmentStatus,
    NotificationKind,
    Seminar,
    SeminarSession,
    SessionStatus,
)
from src.infrastructure.notifications import (
    NotificationDispatcher,
    get_notification_dispatcher,
)
from src.models.session import (
    SessionCreateRequest,
    SessionListResponse,
    SessionResponse,
    SessionUpdateRequest,
    UpcomingSession,
    UpcomingSessionListResponse,
)
from src.utils.datetime import is_expired, parse_iso, utc_now

logger = logging.getLogger(__name__)


class SessionService:
    """Service for session CRUD.

    Attributes:
        db: Async database session.
        access: Seminar authorization checks.
        aggregator: Seminar date span aggregation.
        dispatcher: Notification dispatcher.
    """

    def __init__(
        self,
        db: AsyncSession,
        dispatcher: NotificationDispatcher | None = None,
    ) -> None:
        """Initialize session service.

        Args:
            db: Async database session.
            dispatcher: Notification dispatcher, the process-wide one by default.
        """
        self.db = db
        self.access = SeminarAccessService(db)
        self.aggregator = SeminarDateAggregator(db)
        self.dispatcher = dispatcher or get_notification_dispatcher()

    async def create_session(
        self,
        seminar_id: str,
        request: SessionCreateRequest,
        actor_id: str,
    ) -> SessionResponse:
        """Add a session numbered after the seminar's current last one.

        Args:
            seminar_id: Seminar identifier.
            request: Session data.
            actor_id: Acting user, must manage the seminar.

        Returns:
            The created session.

        Raises:
            SeminarNotFoundError: If the seminar does not exist.
            PermissionDeniedError: If the actor is neither owner nor admin.
        """
        await self.access.require_manager(actor_id, seminar_id)

        result = await self.db.execute(
            select(func.coalesce(func.max(SeminarSession.session_number), 0)).where(
                SeminarSession.seminar_id == str(seminar_id)
            )
        )
        next_number = result.scalar_one() + 1

        session = SeminarSession(
            seminar_id=str(seminar_id),
            session_number=next_number,
            title=request.title,
            description=request.description,
            date=request.date,
            duration_minutes=request.duration_minutes,
            location=request.location,
            status=SessionStatus.SCHEDULED.value,
        )
        self.db.add(session)
        await self.db.flush()

        await self.aggregator.recalculate(seminar_id)
        await self.db.commit()
        await self.db.refresh(session)

        logger.info(
            "Created session: session=%s, seminar=%s, number=%d, by=%s",
            session.id,
            seminar_id,
            next_number,
            actor_id,
        )

        return self._to_response(session)

    async def update_session(
        self,
        session_id: str,
        request: SessionUpdateRequest,
        actor_id: str,
    ) -> SessionResponse:
        """Apply a partial update to a session.

        Approved members are notified that the seminar changed.

        Raises:
            SessionNotFoundError: If the session does not exist.
            PermissionDeniedError: If the actor is neither owner nor admin.
        """
        session = await self._get_session(session_id)
        seminar = await self.access.require_manager(actor_id, session.seminar_id)

        changes = request.model_dump(exclude_unset=True, exclude_none=True)
        for field, value in changes.items():
            setattr(session, field, value)
        await self.db.flush()

        if "date" in changes:
            await self.aggregator.recalculate(session.seminar_id)

        recipients = await self._approved_member_ids(session.seminar_id)
        await self.db.commit()
        await self.db.refresh(session)

        logger.info(
            "Updated session: session=%s, fields=%s, by=%s",
            session.id,
            sorted(changes),
            actor_id,
        )

        if changes:
            self.dispatcher.dispatch(
                recipients,
                NotificationKind.SEMINAR_UPDATED,
                {"seminar_title": seminar.title},
                seminar_id=session.seminar_id,
                session_id=session.id,
            )

        return self._to_response(session)

    async def delete_session(self, session_id: str, actor_id: str) -> None:
        """Delete a session and its credential and attendance rows.

        Raises:
            SessionNotFoundError: If the session does not exist.
            PermissionDeniedError: If the actor is neither owner nor admin.
        """
        session = await self._get_session(session_id)
        seminar_id = session.seminar_id
        await self.access.require_manager(actor_id, seminar_id)

        await self.db.delete(session)
        await self.db.flush()

        await self.aggregator.recalculate(seminar_id)
        await self.db.commit()

        logger.info(
            "Deleted session: session=%s, seminar=%s, by=%s",
            session_id,
            seminar_id,
            actor_id,
        )

    async def list_sessions(self, seminar_id: str) -> SessionListResponse:
        """List a seminar's sessions ordered by number.

        Raises:
            SeminarNotFoundError: If the seminar does not exist.
        """
        await self.access.get_seminar(seminar_id)

        result = await self.db.execute(
            select(SeminarSession)
            .where(SeminarSession.seminar_id == str(seminar_id))
            .order_by(SeminarSession.session_number)
        )
        items = [self._to_response(s) for s in result.scalars().all()]

        return SessionListResponse(seminar_id=str(seminar_id), items=items, total=len(items))

    async def list_upcoming(
        self,
        user_id: str,
        days: int = 7,
        limit: int = 10,
    ) -> UpcomingSessionListResponse:
        """List sessions starting within ``days`` in seminars the user is approved in.

        Cancelled sessions are left out.

        Args:
            user_id: Member whose approved enrollments define the seminars.
            days: Look-ahead window from now.
            limit: Maximum number of sessions returned.

        Returns:
            Sessions ordered by start time.
        """
        now = utc_now()
        approved_seminars = select(Enrollment.seminar_id).where(
            Enrollment.user_id == str(user_id),
            Enrollment.status == EnrollmentStatus.APPROVED.value,
        )

        result = await self.db.execute(
            select(SeminarSession, Seminar.title)
            .join(Seminar, Seminar.id == SeminarSession.seminar_id)
            .where(
                SeminarSession.seminar_id.in_(approved_seminars),
                SeminarSession.date >= now,
                SeminarSession.date < now + timedelta(days=days),
                SeminarSession.status != SessionStatus.CANCELLED.value,
            )
            .order_by(SeminarSession.date)
            .limit(limit)
        )
        items = [
            UpcomingSession(
                id=str(session.id),
                seminar_id=str(session.seminar_id),
                seminar_title=seminar_title,
                session_number=session.session_number,
                title=session.title,
                description=session.description,
                date=session.date,
                duration_minutes=session.duration_minutes,
                location=session.location,
            )
            for session, seminar_title in result.all()
        ]

        return UpcomingSessionListResponse(items=items, total=len(items))

    async def _approved_member_ids(self, seminar_id: str) -> list[str]:
        result = await self.db.execute(
            select(Enrollment.user_id).where(
                Enrollment.seminar_id == str(seminar_id),
                Enrollment.status == EnrollmentStatus.APPROVED.value,
            )
        )
        return [str(user_id) for user_id in result.scalars().all()]

    async def _get_session(self, session_id: str) -> SeminarSession:
        """Get session by ID.

        Raises:
            SessionNotFoundError: If not found.
        """
        result = await self.db.execute(
            select(SeminarSession).where(SeminarSession.id == str(session_id))
        )
        session = result.scalar_one_or_none()

        if not session:
            raise SessionNotFoundError(f"Session {session_id} not found")

        return session

    def _to_response(self, session: SeminarSession) -> SessionResponse:
        """Convert session model to response."""
        credential = session.credential or {}
        expires_at = parse_iso(credential.get("expires_at"))
        return SessionResponse(
            id=str(session.id),
            seminar_id=str(session.seminar_id),
            session_number=session.session_number,
            title=session.title,
            description=session.description,
            date=session.date,
            duration_minutes=session.duration_minutes,
            location=session.location,
            status=session.status,
            has_active_credential=expires_at is not None and not is_expired(expires_at),
        )
