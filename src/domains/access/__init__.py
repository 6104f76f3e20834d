# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Seminar authorization domain package."""

from src.domains.access.service import SeminarAccessService

__all__ = ["SeminarAccessService"]
