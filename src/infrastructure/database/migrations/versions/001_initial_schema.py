# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Initial seminar attendance schema.

Revision ID: 001_initial_schema
Revises: None
Create Date: 2025-03-02
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id_column() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=False),
        server_default=sa.text("gen_random_uuid()"),
        primary_key=True,
    )


def _timestamp_columns() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    ]


def upgrade() -> None:
    """Create seminar attendance tables."""
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    # =========================================================================
    # USERS
    # =========================================================================

    op.create_table(
        "users",
        _id_column(),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(200), nullable=True),
        sa.Column("role", sa.String(20), nullable=False, server_default="member"),
        *_timestamp_columns(),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    # =========================================================================
    # SEMINARS AND SESSIONS
    # =========================================================================

    op.create_table(
        "seminars",
        _id_column(),
        sa.Column(
            "owner_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("users.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("capacity", sa.Integer, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="draft"),
        sa.Column("start_date", sa.Date, nullable=True),
        sa.Column("end_date", sa.Date, nullable=True),
        sa.Column("application_start", sa.DateTime(timezone=True), nullable=True),
        sa.Column("application_end", sa.DateTime(timezone=True), nullable=True),
        *_timestamp_columns(),
        sa.CheckConstraint("capacity > 0", name="ck_seminars_capacity_positive"),
    )
    op.create_index("ix_seminars_owner_id", "seminars", ["owner_id"])

    op.create_table(
        "sessions",
        _id_column(),
        sa.Column(
            "seminar_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("seminars.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("session_number", sa.Integer, nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("duration_minutes", sa.Integer, nullable=False, server_default="90"),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="scheduled"),
        sa.Column("credential", postgresql.JSONB, nullable=True),
        *_timestamp_columns(),
    )
    op.create_index("ix_sessions_seminar_id", "sessions", ["seminar_id"])
    op.create_index("ix_sessions_date", "sessions", ["date"])

    # =========================================================================
    # ENROLLMENT AND ATTENDANCE
    # =========================================================================

    op.create_table(
        "enrollments",
        _id_column(),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "seminar_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("seminars.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column(
            "applied_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "approved_by",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("notes", sa.Text, nullable=True),
        *_timestamp_columns(),
        sa.UniqueConstraint("user_id", "seminar_id", name="uq_enrollments_user_id"),
    )
    op.create_index("ix_enrollments_user_id", "enrollments", ["user_id"])
    op.create_index("ix_enrollments_seminar_id", "enrollments", ["seminar_id"])

    op.create_table(
        "attendances",
        _id_column(),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "session_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("sessions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("checked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "checked_by",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("notes", sa.Text, nullable=True),
        *_timestamp_columns(),
        sa.UniqueConstraint("user_id", "session_id", name="uq_attendances_user_id"),
    )
    op.create_index("ix_attendances_user_id", "attendances", ["user_id"])
    op.create_index("ix_attendances_session_id", "attendances", ["session_id"])

    # =========================================================================
    # NOTIFICATIONS, PERMISSIONS, ANNOUNCEMENTS
    # =========================================================================

    op.create_table(
        "notifications",
        _id_column(),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("kind", sa.String(40), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column(
            "seminar_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("seminars.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column(
            "session_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("sessions.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column(
            "enrollment_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("enrollments.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("is_read", sa.Boolean, nullable=False, server_default="false"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])
    op.create_index(
        "ix_notifications_user_unread", "notifications", ["user_id", "is_read"]
    )

    op.create_table(
        "seminar_permissions",
        _id_column(),
        sa.Column(
            "seminar_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("seminars.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column(
            "granted_by",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.UniqueConstraint(
            "seminar_id", "user_id", name="uq_seminar_permissions_seminar_id"
        ),
    )
    op.create_index(
        "ix_seminar_permissions_seminar_id", "seminar_permissions", ["seminar_id"]
    )

    op.create_table(
        "announcements",
        _id_column(),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("is_global", sa.Boolean, nullable=False, server_default="false"),
        sa.Column(
            "seminar_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("seminars.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column(
            "author_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    )
    op.create_index("ix_announcements_seminar_id", "announcements", ["seminar_id"])


def downgrade() -> None:
    """Drop seminar attendance tables."""
    op.drop_index("ix_announcements_seminar_id", table_name="announcements")
    op.drop_table("announcements")
    op.drop_index("ix_seminar_permissions_seminar_id", table_name="seminar_permissions")
    op.drop_table("seminar_permissions")
    op.drop_index("ix_notifications_user_unread", table_name="notifications")
    op.drop_index("ix_notifications_user_id", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("ix_attendances_session_id", table_name="attendances")
    op.drop_index("ix_attendances_user_id", table_name="attendances")
    op.drop_table("attendances")
    op.drop_index("ix_enrollments_seminar_id", table_name="enrollments")
    op.drop_index("ix_enrollments_user_id", table_name="enrollments")
    op.drop_table("enrollments")
    op.drop_index("ix_sessions_date", table_name="sessions")
    op.drop_index("ix_sessions_seminar_id", table_name="sessions")
    op.drop_table("sessions")
    op.drop_index("ix_seminars_owner_id", table_name="seminars")
    op.drop_table("seminars")
    op.drop_table("users")
