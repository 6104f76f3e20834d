# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment service for seminar membership.

This module provides the EnrollmentService class for:
- Enrollment requests (pending)
- Owner/admin decisions (approved, rejected)
- Listing, removal and capacity statistics
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.domains.access import SeminarAccessService
from src.domains.errors import (
    AlreadyEnrolledError,
    BadRequestError,
    EnrollmentNotFoundError,
)
from src.infrastructure.database.models import (
    Enrollment,
    EnrollmentStatus,
    NotificationKind,
    User,
)
from src.infrastructure.notifications import (
    NotificationDispatcher,
    get_notification_dispatcher,
)
from src.models.enrollment import (
    EnrollmentListResponse,
    EnrollmentResponse,
    EnrollmentStats,
)
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)

DECIDABLE_STATUSES = frozenset({EnrollmentStatus.APPROVED, EnrollmentStatus.REJECTED})

_DECISION_NOTIFICATIONS = {
    EnrollmentStatus.APPROVED: NotificationKind.ENROLLMENT_APPROVED,
    EnrollmentStatus.REJECTED: NotificationKind.ENROLLMENT_REJECTED,
}


class EnrollmentService:
    """Service for the enrollment approval workflow.

    Enrollments start as ``pending``. Only the seminar owner or an admin
    moves them to ``approved`` or ``rejected``; the affected user is then
    notified on a best-effort basis after the change is committed.

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
        """Initialize enrollment service.

        Args:
            db: Async database session.
            dispatcher: Notification dispatcher, the process-wide one by default.
        """
        self.db = db
        self.access = SeminarAccessService(db)
        self.dispatcher = dispatcher or get_notification_dispatcher()

    async def request_enrollment(
        self,
        user_id: str,
        seminar_id: str,
    ) -> EnrollmentResponse:
        """Create a pending enrollment for a user.

        Args:
            user_id: Applying user.
            seminar_id: Seminar identifier.

        Returns:
            The new enrollment.

        Raises:
            SeminarNotFoundError: If the seminar does not exist.
            AlreadyEnrolledError: If the user already has an enrollment row.
        """
        await self.access.get_seminar(seminar_id)

        existing = await self._find_enrollment(user_id, seminar_id)
        if existing is not None:
            raise AlreadyEnrolledError(
                f"An enrollment already exists for this seminar (status: {existing.status})"
            )

        enrollment = Enrollment(
            user_id=str(user_id),
            seminar_id=str(seminar_id),
            status=EnrollmentStatus.PENDING.value,
            applied_at=utc_now(),
        )
        self.db.add(enrollment)

        try:
            await self.db.commit()
        except IntegrityError as e:
            # Concurrent request for the same pair won the unique constraint
            await self.db.rollback()
            raise AlreadyEnrolledError("An enrollment already exists for this seminar") from e

        await self.db.refresh(enrollment)

        logger.info(
            "Enrollment requested: user=%s, seminar=%s, enrollment=%s",
            user_id,
            seminar_id,
            enrollment.id,
        )

        return self._to_response(enrollment)

    async def decide(
        self,
        enrollment_id: str,
        new_status: EnrollmentStatus | str,
        actor_id: str,
    ) -> EnrollmentResponse:
        """Approve or reject an enrollment.

        Args:
            enrollment_id: Enrollment identifier.
            new_status: ``approved`` or ``rejected``.
            actor_id: Acting user, must manage the seminar.

        Returns:
            The updated enrollment.

        Raises:
            BadRequestError: If the status is not a decision.
            EnrollmentNotFoundError: If the enrollment does not exist.
            SeminarNotFoundError: If its seminar does not exist.
            PermissionDeniedError: If the actor is neither owner nor admin.
        """
        try:
            status = EnrollmentStatus(new_status)
        except ValueError as e:
            raise BadRequestError(f"Invalid enrollment status: {new_status}") from e
        if status not in DECIDABLE_STATUSES:
            raise BadRequestError("Status must be 'approved' or 'rejected'")

        enrollment = await self._get_enrollment(enrollment_id)
        seminar = await self.access.require_manager(actor_id, enrollment.seminar_id)

        previous = enrollment.status
        enrollment.status = status.value
        if status == EnrollmentStatus.APPROVED:
            enrollment.approved_at = utc_now()
            enrollment.approved_by = str(actor_id)

        await self.db.commit()
        await self.db.refresh(enrollment)

        logger.info(
            "Enrollment decided: enrollment=%s, seminar=%s, %s -> %s, by=%s",
            enrollment.id,
            enrollment.seminar_id,
            previous,
            status.value,
            actor_id,
        )

        self.dispatcher.dispatch(
            [enrollment.user_id],
            _DECISION_NOTIFICATIONS[status],
            {"seminar_title": seminar.title},
            seminar_id=enrollment.seminar_id,
            enrollment_id=enrollment.id,
        )

        return self._to_response(enrollment)

    async def list_enrollments(
        self,
        seminar_id: str,
        actor_id: str,
        status: str | None = None,
    ) -> EnrollmentListResponse:
        """List enrollments of a seminar ordered by application time.

        Args:
            seminar_id: Seminar identifier.
            actor_id: Acting user, must manage the seminar.
            status: Optional status filter.

        Returns:
            Enrollments with applicant details.
        """
        await self.access.require_manager(actor_id, seminar_id)

        query = (
            select(Enrollment)
            .options(selectinload(Enrollment.user))
            .where(Enrollment.seminar_id == str(seminar_id))
        )
        if status:
            query = query.where(Enrollment.status == status)
        query = query.order_by(Enrollment.applied_at)

        result = await self.db.execute(query)
        enrollments = result.scalars().all()

        items = [self._to_response(e, e.user) for e in enrollments]
        return EnrollmentListResponse(seminar_id=str(seminar_id), items=items, total=len(items))

    async def remove_enrollment(self, enrollment_id: str, actor_id: str) -> None:
        """Permanently remove an enrollment record.

        Args:
            enrollment_id: Enrollment identifier.
            actor_id: Acting user, must manage the seminar.

        Raises:
            EnrollmentNotFoundError: If the enrollment does not exist.
            PermissionDeniedError: If the actor is neither owner nor admin.
        """
        enrollment = await self._get_enrollment(enrollment_id)
        await self.access.require_manager(actor_id, enrollment.seminar_id)

        await self.db.delete(enrollment)
        await self.db.commit()

        logger.info(
            "Removed enrollment: enrollment=%s, user=%s, seminar=%s, by=%s",
            enrollment_id,
            enrollment.user_id,
            enrollment.seminar_id,
            actor_id,
        )

    async def get_stats(self, seminar_id: str) -> EnrollmentStats:
        """Count enrollments by status against capacity.

        Args:
            seminar_id: Seminar identifier.

        Returns:
            Counts per status, total and remaining seats.

        Raises:
            SeminarNotFoundError: If the seminar does not exist.
        """
        seminar = await self.access.get_seminar(seminar_id)

        result = await self.db.execute(
            select(Enrollment.status, func.count(Enrollment.id))
            .where(Enrollment.seminar_id == str(seminar_id))
            .group_by(Enrollment.status)
        )
        counts = {status: count for status, count in result.all()}

        approved = counts.get(EnrollmentStatus.APPROVED.value, 0)
        return EnrollmentStats(
            seminar_id=str(seminar_id),
            capacity=seminar.capacity,
            pending=counts.get(EnrollmentStatus.PENDING.value, 0),
            approved=approved,
            rejected=counts.get(EnrollmentStatus.REJECTED.value, 0),
            cancelled=counts.get(EnrollmentStatus.CANCELLED.value, 0),
            total=sum(counts.values()),
            available=max(seminar.capacity - approved, 0),
        )

    async def _find_enrollment(self, user_id: str, seminar_id: str) -> Enrollment | None:
        query = select(Enrollment).where(
            Enrollment.user_id == str(user_id),
            Enrollment.seminar_id == str(seminar_id),
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def _get_enrollment(self, enrollment_id: str) -> Enrollment:
        """Get enrollment by ID.

        Raises:
            EnrollmentNotFoundError: If not found.
        """
        result = await self.db.execute(
            select(Enrollment).where(Enrollment.id == str(enrollment_id))
        )
        enrollment = result.scalar_one_or_none()

        if not enrollment:
            raise EnrollmentNotFoundError(f"Enrollment {enrollment_id} not found")

        return enrollment

    def _to_response(
        self,
        enrollment: Enrollment,
        user: User | None = None,
    ) -> EnrollmentResponse:
        """Convert enrollment model to response."""
        return EnrollmentResponse(
            id=str(enrollment.id),
            user_id=str(enrollment.user_id),
            seminar_id=str(enrollment.seminar_id),
            status=enrollment.status,
            applied_at=enrollment.applied_at,
            approved_at=enrollment.approved_at,
            approved_by=str(enrollment.approved_by) if enrollment.approved_by else None,
            notes=enrollment.notes,
            user_name=user.name if user else None,
            user_email=user.email if user else None,
        )
