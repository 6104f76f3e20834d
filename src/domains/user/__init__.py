# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User domain: system role management."""

from src.domains.user.service import UserService

__all__ = ["UserService"]
