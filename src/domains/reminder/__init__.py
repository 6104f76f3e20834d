# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Reminder domain: upcoming session notifications."""

from src.domains.reminder.service import ReminderService, format_start, reminder_window

__all__ = ["ReminderService", "reminder_window", "format_start"]
