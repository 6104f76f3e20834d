# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Seminar domain: seminar CRUD and derived date span aggregation."""

from src.domains.seminar.aggregation import SeminarDateAggregator, compute_date_span
from src.domains.seminar.service import SeminarService

__all__ = ["SeminarDateAggregator", "SeminarService", "compute_date_span"]
