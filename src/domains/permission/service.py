# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Seminar-scoped permission grants.

A grant gives a non-owner the ``assistant`` or ``moderator`` role within
one seminar. Granting again replaces the role. Grants do not make the
holder a manager.
"""

import logging

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.access import SeminarAccessService
from src.domains.errors import BadRequestError, UserNotFoundError
from src.infrastructure.database.models import (
    NotificationKind,
    SeminarPermission,
    SeminarRole,
    User,
)
from src.infrastructure.notifications import (
    NotificationDispatcher,
    get_notification_dispatcher,
)
from src.models.notification import (
    GrantPermissionRequest,
    PermissionListResponse,
    PermissionResponse,
)

logger = logging.getLogger(__name__)


class PermissionService:
    """Grants and lists seminar-scoped roles.

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

    async def grant(
        self,
        seminar_id: str,
        request: GrantPermissionRequest,
        actor_id: str,
    ) -> PermissionResponse:
        """Grant or replace a user's role within a seminar.

        Args:
            seminar_id: Seminar identifier.
            request: Target user and role.
            actor_id: Acting user, must manage the seminar.

        Returns:
            The stored grant.

        Raises:
            SeminarNotFoundError: If the seminar does not exist.
            PermissionDeniedError: If the actor is neither owner nor admin.
            BadRequestError: If the target is the seminar owner.
            UserNotFoundError: If the target user does not exist.
        """
        seminar = await self.access.require_manager(actor_id, seminar_id)
        role = SeminarRole(request.role)

        if str(request.user_id) == str(seminar.owner_id):
            raise BadRequestError("The seminar owner cannot be granted a seminar role")

        user_result = await self.db.execute(select(User.id).where(User.id == str(request.user_id)))
        if user_result.scalar_one_or_none() is None:
            raise UserNotFoundError(f"User {request.user_id} not found")

        stmt = insert(SeminarPermission).values(
            seminar_id=str(seminar_id),
            user_id=str(request.user_id),
            role=role.value,
            granted_by=str(actor_id),
        )
        stmt = (
            stmt.on_conflict_do_update(
                index_elements=[SeminarPermission.seminar_id, SeminarPermission.user_id],
                set_={"role": stmt.excluded.role, "granted_by": stmt.excluded.granted_by},
            )
            .returning(SeminarPermission)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        permission = result.scalar_one()
        response = self._to_response(permission)
        await self.db.commit()

        logger.info(
            "Seminar permission granted: seminar=%s, user=%s, role=%s, by=%s",
            seminar_id,
            request.user_id,
            role.value,
            actor_id,
        )

        self.dispatcher.dispatch(
            [request.user_id],
            NotificationKind.PERMISSION_GRANTED,
            {"role": role.value, "seminar_title": seminar.title},
            seminar_id=str(seminar_id),
        )

        return response

    async def list_permissions(self, seminar_id: str, actor_id: str) -> PermissionListResponse:
        """List role holders of a seminar.

        Raises:
            SeminarNotFoundError: If the seminar does not exist.
            PermissionDeniedError: If the actor is neither owner nor admin.
        """
        await self.access.require_manager(actor_id, seminar_id)

        result = await self.db.execute(
            select(SeminarPermission)
            .where(SeminarPermission.seminar_id == str(seminar_id))
            .order_by(SeminarPermission.created_at)
        )
        items = [self._to_response(p) for p in result.scalars().all()]

        return PermissionListResponse(seminar_id=str(seminar_id), items=items, total=len(items))

    def _to_response(self, permission: SeminarPermission) -> PermissionResponse:
        return PermissionResponse(
            id=str(permission.id),
            seminar_id=str(permission.seminar_id),
            user_id=str(permission.user_id),
            role=permission.role,
            granted_by=str(permission.granted_by) if permission.granted_by else None,
            created_at=permission.created_at,
        )
