# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Permission domain: seminar-scoped roles."""

from src.domains.permission.service import PermissionService

__all__ = ["PermissionService"]
