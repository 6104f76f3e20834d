# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Session domain: scheduled meetings of a seminar."""

from src.domains.session.service import SessionService

__all__ = ["SessionService"]
