# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User service for system role management.

Users are provisioned by the identity provider; this service only reads
them and lets an admin change a user's stored role. The affected user is
notified after the change is committed.

Example:
    >>> user_service = UserService(db_session)
    >>> user = await user_service.change_role(user_id, "admin", actor_id)
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.access import SeminarAccessService
from src.domains.errors import BadRequestError, UserNotFoundError
from src.infrastructure.database.models import NotificationKind, User, UserRole
from src.infrastructure.notifications import (
    NotificationDispatcher,
    get_notification_dispatcher,
)
from src.models.notification import UserResponse

logger = logging.getLogger(__name__)


class UserService:
    """Service for user lookups and role changes.

    Attributes:
        db: Async database session.
        access: Authorization checks.
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

    async def change_role(
        self,
        user_id: str,
        role: UserRole | str,
        actor_id: str,
    ) -> UserResponse:
        """Change a user's system role.

        Args:
            user_id: Target user.
            role: ``admin`` or ``member``.
            actor_id: Acting user, must be an admin.

        Returns:
            The updated user.

        Raises:
            PermissionDeniedError: If the actor is not an admin.
            BadRequestError: If the role is unknown.
            UserNotFoundError: If the target user does not exist.
        """
        await self.access.require_admin(actor_id)

        try:
            new_role = UserRole(role)
        except ValueError as e:
            raise BadRequestError(f"Invalid role: {role}") from e

        user = await self._get_user(user_id)
        previous = user.role
        user.role = new_role.value

        await self.db.commit()
        await self.db.refresh(user)

        logger.info(
            "User role changed: user=%s, %s -> %s, by=%s",
            user.id,
            previous,
            new_role.value,
            actor_id,
        )

        self.dispatcher.dispatch(
            [user.id],
            NotificationKind.ROLE_CHANGED,
            {"role": new_role.value},
        )

        return self._to_response(user)

    async def _get_user(self, user_id: str) -> User:
        result = await self.db.execute(select(User).where(User.id == str(user_id)))
        user = result.scalar_one_or_none()

        if not user:
            raise UserNotFoundError(f"User {user_id} not found")

        return user

    def _to_response(self, user: User) -> UserResponse:
        return UserResponse(
            id=str(user.id),
            email=user.email,
            name=user.name,
            role=user.role,
        )
