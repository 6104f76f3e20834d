# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Title and message templates per notification kind."""

from typing import Any, Mapping

from src.infrastructure.database.models.notification import NotificationKind

NOTIFICATION_TEMPLATES: dict[NotificationKind, tuple[str, str]] = {
    NotificationKind.ENROLLMENT_APPROVED: (
        "Enrollment approved",
        "Your enrollment in '{seminar_title}' has been approved.",
    ),
    NotificationKind.ENROLLMENT_REJECTED: (
        "Enrollment rejected",
        "Your enrollment in '{seminar_title}' was not approved.",
    ),
    NotificationKind.SESSION_REMINDER: (
        "Upcoming session",
        "'{session_title}' of '{seminar_title}' starts at {starts_at}.",
    ),
    NotificationKind.SEMINAR_UPDATED: (
        "Seminar updated",
        "'{seminar_title}' has been updated.",
    ),
    NotificationKind.ANNOUNCEMENT: (
        "New announcement",
        "{title}: {excerpt}",
    ),
    NotificationKind.ATTENDANCE_MARKED: (
        "Attendance recorded",
        "Your attendance for '{session_title}' was marked as {status}.",
    ),
    NotificationKind.ROLE_CHANGED: (
        "Role changed",
        "Your role has been changed to {role}.",
    ),
    NotificationKind.PERMISSION_GRANTED: (
        "Seminar permission granted",
        "You have been granted the {role} role for '{seminar_title}'.",
    ),
}


def render_notification(
    kind: NotificationKind,
    context: Mapping[str, Any],
) -> tuple[str, str]:
    """Render the title and message for a notification kind.

    Args:
        kind: Notification kind.
        context: Values substituted into the templates.

    Returns:
        Tuple of (title, message).

    Raises:
        ValueError: If the context lacks a placeholder the template needs.
    """
    title_template, message_template = NOTIFICATION_TEMPLATES[kind]
    try:
        return title_template.format(**context), message_template.format(**context)
    except KeyError as e:
        raise ValueError(f"Missing template value {e} for {kind.value}") from e
