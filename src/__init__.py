"""Seminar Attendance Backend.

Seminar enrollment, session scheduling, credential-based check-in and
attendance tracking with an in-app notification inbox.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
