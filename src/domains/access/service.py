# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Centralized seminar authorization checks.

A manager of a seminar is its owner or any user whose stored role is
``admin``. Seminar-scoped permission holders (assistant, moderator) are
not managers. The role claim in the access token is never trusted for
these decisions; the ``users`` table is.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.errors import PermissionDeniedError, SeminarNotFoundError
from src.infrastructure.database.models import Seminar, User, UserRole

logger = logging.getLogger(__name__)


class SeminarAccessService:
    """Answers "may this actor manage this seminar?".

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_seminar(self, seminar_id: str) -> Seminar:
        """Load a seminar.

        Raises:
            SeminarNotFoundError: If the seminar does not exist.
        """
        result = await self.db.execute(select(Seminar).where(Seminar.id == str(seminar_id)))
        seminar = result.scalar_one_or_none()
        if seminar is None:
            raise SeminarNotFoundError(f"Seminar {seminar_id} not found")
        return seminar

    async def is_admin(self, user_id: str) -> bool:
        """Check the stored role of a user.

        Args:
            user_id: User identifier.

        Returns:
            True if the user exists and holds the admin role.
        """
        result = await self.db.execute(select(User.role).where(User.id == str(user_id)))
        return result.scalar_one_or_none() == UserRole.ADMIN.value

    async def can_manage(
        self,
        actor_id: str,
        seminar_id: str,
        *,
        seminar: Seminar | None = None,
    ) -> bool:
        """Check whether the actor may manage the seminar.

        Args:
            actor_id: Acting user.
            seminar_id: Seminar identifier.
            seminar: The seminar when the caller already loaded it.

        Returns:
            True for the seminar owner or an admin.

        Raises:
            SeminarNotFoundError: If the seminar does not exist.
        """
        if seminar is None:
            seminar = await self.get_seminar(seminar_id)
        if seminar.owner_id == str(actor_id):
            return True
        return await self.is_admin(actor_id)

    async def require_manager(self, actor_id: str, seminar_id: str) -> Seminar:
        """Assert the actor manages the seminar.

        Returns:
            The seminar.

        Raises:
            SeminarNotFoundError: If the seminar does not exist.
            PermissionDeniedError: If the actor is neither owner nor admin.
        """
        seminar = await self.get_seminar(seminar_id)
        if not await self.can_manage(actor_id, seminar_id, seminar=seminar):
            logger.info(
                "Manager check denied: actor=%s, seminar=%s", actor_id, seminar_id
            )
            raise PermissionDeniedError("Only the seminar owner or an admin can do this")
        return seminar

    async def require_admin(self, actor_id: str) -> None:
        """Assert the actor holds the admin role.

        Raises:
            PermissionDeniedError: If the actor is not an admin.
        """
        if not await self.is_admin(actor_id):
            raise PermissionDeniedError("Admin access required")
