# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Seminar and session models.

A seminar's ``start_date``/``end_date`` are derived from its sessions and
are written only by the date aggregation service. Each session carries at
most one active check-in credential in its ``credential`` JSONB slot.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import Base, TimestampMixin, UUIDMixin


class SeminarStatus(str, Enum):
    """Seminar lifecycle status."""

    DRAFT = "draft"
    RECRUITING = "recruiting"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SessionStatus(str, Enum):
    """Session lifecycle status."""

    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Seminar(Base, UUIDMixin, TimestampMixin):
    """A recurring group that members enroll in."""

    __tablename__ = "seminars"
    __table_args__ = (CheckConstraint("capacity > 0", name="capacity_positive"),)

    owner_id: Mapped[str] = mapped_column(
        postgresql.UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=SeminarStatus.DRAFT.value,
        server_default=SeminarStatus.DRAFT.value,
    )
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    application_start: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    application_end: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    sessions: Mapped[list["SeminarSession"]] = relationship(
        back_populates="seminar",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="SeminarSession.session_number",
    )

    def __repr__(self) -> str:
        return f"<Seminar(id={self.id}, title={self.title}, status={self.status})>"


class SeminarSession(Base, UUIDMixin, TimestampMixin):
    """One scheduled meeting of a seminar."""

    __tablename__ = "sessions"

    seminar_id: Mapped[str] = mapped_column(
        postgresql.UUID(as_uuid=False),
        ForeignKey("seminars.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    session_number: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
    duration_minutes: Mapped[int] = mapped_column(
        Integer, nullable=False, default=90, server_default="90"
    )
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=SessionStatus.SCHEDULED.value,
        server_default=SessionStatus.SCHEDULED.value,
    )
    # {token, numeric_code, expires_at, issued_by, issued_at}
    credential: Mapped[dict[str, Any] | None] = mapped_column(
        postgresql.JSONB, nullable=True
    )

    seminar: Mapped[Seminar] = relationship(back_populates="sessions")

    def __repr__(self) -> str:
        return (
            f"<SeminarSession(id={self.id}, seminar_id={self.seminar_id}, "
            f"number={self.session_number})>"
        )
