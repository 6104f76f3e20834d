# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Seminar date span aggregation.

A seminar's ``start_date``/``end_date`` are derived from its sessions:
the UTC calendar dates of the earliest and latest session, or both null
when there are no sessions. Session mutations call ``recalculate`` in the
same transaction before committing.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Iterable

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.access import SeminarAccessService
from src.infrastructure.database.models import Seminar, SeminarSession
from src.models.session import RecalculateResponse, SeminarDateSpan
from src.utils.datetime import to_utc_date

logger = logging.getLogger(__name__)


def compute_date_span(dates: Iterable[datetime]) -> tuple[date | None, date | None]:
    """Earliest and latest calendar dates of a set of session instants.

    Args:
        dates: Session start instants.

    Returns:
        ``(start_date, end_date)``, or ``(None, None)`` for an empty set.
    """
    days = [to_utc_date(d) for d in dates]
    if not days:
        return None, None
    return min(days), max(days)


class SeminarDateAggregator:
    """Keeps seminar date spans in line with their sessions.

    Attributes:
        db: Async database session.
        access: Seminar authorization checks.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.access = SeminarAccessService(db)

    async def recalculate(self, seminar_id: str) -> SeminarDateSpan:
        """Recompute and store one seminar's date span. Does not commit.

        Args:
            seminar_id: Seminar identifier.

        Returns:
            The stored span.
        """
        result = await self.db.execute(
            select(SeminarSession.date).where(SeminarSession.seminar_id == str(seminar_id))
        )
        start_date, end_date = compute_date_span(result.scalars().all())

        await self.db.execute(
            update(Seminar)
            .where(Seminar.id == str(seminar_id))
            .values(start_date=start_date, end_date=end_date)
        )

        logger.debug(
            "Seminar dates recalculated: seminar=%s, start=%s, end=%s",
            seminar_id,
            start_date,
            end_date,
        )

        return SeminarDateSpan(
            seminar_id=str(seminar_id),
            start_date=start_date,
            end_date=end_date,
        )

    async def recalculate_all(self, actor_id: str) -> RecalculateResponse:
        """Recompute every seminar's date span.

        Args:
            actor_id: Acting user, must be an admin.

        Returns:
            Per-seminar spans.

        Raises:
            PermissionDeniedError: If the actor is not an admin.
        """
        await self.access.require_admin(actor_id)

        result = await self.db.execute(select(Seminar.id).order_by(Seminar.created_at))
        seminar_ids = result.scalars().all()

        items = [await self.recalculate(seminar_id) for seminar_id in seminar_ids]
        await self.db.commit()

        logger.info(
            "Recalculated seminar dates: seminars=%d, by=%s",
            len(items),
            actor_id,
        )

        return RecalculateResponse(items=items, total=len(items))
