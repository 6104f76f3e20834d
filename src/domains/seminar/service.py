# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Seminar service for creating, browsing and editing seminars.

The date span (``start_date``/``end_date``) is never written here; it is
owned by ``SeminarDateAggregator`` and follows the sessions.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.access import SeminarAccessService
from src.domains.errors import BadRequestError, SeminarNotFoundError
from src.infrastructure.database.models import (
    Enrollment,
    EnrollmentStatus,
    NotificationKind,
    Seminar,
    SeminarPermission,
    SeminarSession,
    User,
    UserRole,
)
from src.infrastructure.notifications import (
    NotificationDispatcher,
    get_notification_dispatcher,
)
from src.models.seminar import (
    SeminarCreateRequest,
    SeminarListResponse,
    SeminarResponse,
    SeminarRoleResponse,
    SeminarUpdateRequest,
)
from src.utils.datetime import ensure_utc

logger = logging.getLogger(__name__)


class SeminarService:
    """Service for seminar CRUD and per-seminar role lookups.

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
        """Initialize seminar service.

        Args:
            db: Async database session.
            dispatcher: Notification dispatcher, the process-wide one by default.
        """
        self.db = db
        self.access = SeminarAccessService(db)
        self.dispatcher = dispatcher or get_notification_dispatcher()

    async def create_seminar(
        self,
        request: SeminarCreateRequest,
        actor_id: str,
    ) -> SeminarResponse:
        """Create a seminar owned by the actor.

        Args:
            request: Seminar data. Dates come later from its sessions.
            actor_id: Creating user, stored as the owner.

        Returns:
            The created seminar with no sessions or members yet.
        """
        seminar = Seminar(
            owner_id=str(actor_id),
            title=request.title,
            description=request.description,
            capacity=request.capacity,
            status=request.status,
            application_start=request.application_start,
            application_end=request.application_end,
        )
        self.db.add(seminar)
        await self.db.flush()
        await self.db.commit()
        await self.db.refresh(seminar)

        logger.info(
            "Created seminar: seminar=%s, owner=%s, capacity=%d",
            seminar.id,
            actor_id,
            seminar.capacity,
        )

        return self._to_response(seminar)

    async def list_seminars(
        self,
        status: str | None = None,
        search: str | None = None,
    ) -> SeminarListResponse:
        """List seminars, newest first.

        Args:
            status: Only seminars in this status.
            search: Case-insensitive match on title or description.
        """
        query = self._summary_query().order_by(Seminar.created_at.desc())
        if status:
            query = query.where(Seminar.status == status)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.where(
                or_(Seminar.title.ilike(pattern), Seminar.description.ilike(pattern))
            )

        result = await self.db.execute(query)
        items = [self._to_response(*row) for row in result.all()]

        return SeminarListResponse(items=items, total=len(items))

    async def get_seminar(self, seminar_id: str) -> SeminarResponse:
        """Get one seminar with its owner's name and counts.

        Raises:
            SeminarNotFoundError: If the seminar does not exist.
        """
        result = await self.db.execute(
            self._summary_query().where(Seminar.id == str(seminar_id))
        )
        row = result.one_or_none()
        if row is None:
            raise SeminarNotFoundError(f"Seminar {seminar_id} not found")
        return self._to_response(*row)

    async def update_seminar(
        self,
        seminar_id: str,
        request: SeminarUpdateRequest,
        actor_id: str,
    ) -> SeminarResponse:
        """Apply a partial update to a seminar.

        Capacity cannot drop below the number of approved members. Approved
        members are notified that the seminar changed.

        Raises:
            SeminarNotFoundError: If the seminar does not exist.
            PermissionDeniedError: If the actor is neither owner nor admin.
            BadRequestError: Capacity under the approved count, or an
                application window that ends before it starts.
        """
        seminar = await self.access.require_manager(actor_id, seminar_id)
        changes = request.model_dump(exclude_unset=True, exclude_none=True)
        recipients = await self._approved_member_ids(seminar_id)

        if "capacity" in changes and changes["capacity"] < len(recipients):
            raise BadRequestError(
                f"Capacity cannot be lower than the {len(recipients)} approved members"
            )

        window_start = ensure_utc(changes.get("application_start", seminar.application_start))
        window_end = ensure_utc(changes.get("application_end", seminar.application_end))
        if window_start is not None and window_end is not None and window_start > window_end:
            raise BadRequestError("Application window must not end before it starts")

        for field, value in changes.items():
            setattr(seminar, field, value)
        await self.db.flush()
        await self.db.commit()

        logger.info(
            "Updated seminar: seminar=%s, fields=%s, by=%s",
            seminar_id,
            sorted(changes),
            actor_id,
        )

        if changes:
            self.dispatcher.dispatch(
                recipients,
                NotificationKind.SEMINAR_UPDATED,
                {"seminar_title": seminar.title},
                seminar_id=str(seminar_id),
            )

        return await self.get_seminar(seminar_id)

    async def check_role(self, seminar_id: str, actor_id: str) -> SeminarRoleResponse:
        """Report what the actor may do in a seminar.

        Raises:
            SeminarNotFoundError: If the seminar does not exist.
        """
        seminar = await self.access.get_seminar(seminar_id)

        result = await self.db.execute(select(User.role).where(User.id == str(actor_id)))
        user_role = result.scalar_one_or_none() or UserRole.MEMBER.value

        can_manage = await self.access.can_manage(actor_id, seminar_id, seminar=seminar)

        result = await self.db.execute(
            select(SeminarPermission.role).where(
                SeminarPermission.seminar_id == str(seminar_id),
                SeminarPermission.user_id == str(actor_id),
            )
        )

        return SeminarRoleResponse(
            seminar_id=str(seminar_id),
            can_manage=can_manage,
            is_owner=seminar.owner_id == str(actor_id),
            is_admin=user_role == UserRole.ADMIN.value,
            user_role=user_role,
            seminar_role=result.scalar_one_or_none(),
        )

    @staticmethod
    def _summary_query() -> Select[Any]:
        """Seminars joined with owner name, approved count and session count."""
        approved = (
            select(Enrollment.seminar_id, func.count(Enrollment.id).label("approved_count"))
            .where(Enrollment.status == EnrollmentStatus.APPROVED.value)
            .group_by(Enrollment.seminar_id)
            .subquery()
        )
        sessions = (
            select(SeminarSession.seminar_id, func.count(SeminarSession.id).label("session_count"))
            .group_by(SeminarSession.seminar_id)
            .subquery()
        )
        return (
            select(
                Seminar,
                User.name,
                func.coalesce(approved.c.approved_count, 0),
                func.coalesce(sessions.c.session_count, 0),
            )
            .outerjoin(User, User.id == Seminar.owner_id)
            .outerjoin(approved, approved.c.seminar_id == Seminar.id)
            .outerjoin(sessions, sessions.c.seminar_id == Seminar.id)
        )

    async def _approved_member_ids(self, seminar_id: str) -> list[str]:
        result = await self.db.execute(
            select(Enrollment.user_id).where(
                Enrollment.seminar_id == str(seminar_id),
                Enrollment.status == EnrollmentStatus.APPROVED.value,
            )
        )
        return [str(user_id) for user_id in result.scalars().all()]

    def _to_response(
        self,
        seminar: Seminar,
        owner_name: str | None = None,
        approved_count: int = 0,
        session_count: int = 0,
    ) -> SeminarResponse:
        """Convert seminar model to response."""
        return SeminarResponse(
            id=str(seminar.id),
            owner_id=str(seminar.owner_id),
            owner_name=owner_name,
            title=seminar.title,
            description=seminar.description,
            capacity=seminar.capacity,
            status=seminar.status,
            start_date=seminar.start_date,
            end_date=seminar.end_date,
            application_start=seminar.application_start,
            application_end=seminar.application_end,
            approved_count=approved_count,
            session_count=session_count,
            created_at=seminar.created_at,
        )
