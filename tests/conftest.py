# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Unit tests (mocked AsyncSession)
- API tests (TestClient with dependency overrides)
- Integration tests (real PostgreSQL, see tests/integration/database/conftest.py)
"""

import os

# Must be set before any src module reads settings or binds actors
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-testing-only")
os.environ.setdefault("RATE_LIMIT_STORAGE_URI", "memory://")
os.environ.setdefault("DRAMATIQ_TEST_MODE", "true")
os.environ.setdefault("REMINDER_ENABLED", "false")

from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from typing import Any
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (requires PostgreSQL)"
    )


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def mock_db() -> AsyncMock:
    """Create mock database session."""
    db = AsyncMock()
    db.add = MagicMock()
    db.add_all = MagicMock()
    db.delete = AsyncMock()
    db.flush = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.refresh = AsyncMock()
    db.execute = AsyncMock()
    return db


@pytest.fixture
def make_result() -> Callable[..., MagicMock]:
    """Build a mock ``Result`` as returned by ``AsyncSession.execute``.

    Example:
        mock_db.execute.side_effect = [make_result(scalar=seminar), make_result(rows=[])]
    """

    def _make(
        scalar: Any = None,
        scalars: Iterable[Any] | None = None,
        rows: Iterable[Any] | None = None,
        rowcount: int = 0,
    ) -> MagicMock:
        result = MagicMock()
        result.scalar_one_or_none.return_value = scalar
        result.scalar_one.return_value = scalar
        result.scalar.return_value = scalar
        result.scalars.return_value.all.return_value = list(scalars or [])
        result.all.return_value = list(rows or [])
        result.one_or_none.return_value = next(iter(result.all.return_value), None)
        result.rowcount = rowcount
        return result

    return _make


@pytest.fixture
def mock_dispatcher() -> MagicMock:
    """Notification dispatcher that records calls instead of enqueueing."""
    dispatcher = MagicMock()
    dispatcher.dispatch.return_value = True
    return dispatcher


# =============================================================================
# Sample Entities
# =============================================================================


@pytest.fixture
def owner_id() -> str:
    """Provide the seminar owner's ID."""
    return "550e8400-e29b-41d4-a716-446655440000"


@pytest.fixture
def member_id() -> str:
    """Provide a member's ID."""
    return "550e8400-e29b-41d4-a716-446655440001"


@pytest.fixture
def sample_seminar(owner_id: str) -> MagicMock:
    """Create a sample seminar model."""
    seminar = MagicMock()
    seminar.id = str(uuid4())
    seminar.title = "Distributed Systems Reading Group"
    seminar.owner_id = owner_id
    seminar.capacity = 20
    seminar.status = "active"
    seminar.start_date = None
    seminar.end_date = None
    return seminar


@pytest.fixture
def sample_session(sample_seminar: MagicMock) -> MagicMock:
    """Create a sample session model without a credential."""
    session = MagicMock()
    session.id = str(uuid4())
    session.seminar_id = sample_seminar.id
    session.session_number = 1
    session.title = "Consensus"
    session.description = None
    session.date = datetime(2025, 1, 20, 18, 0, tzinfo=timezone.utc)
    session.duration_minutes = 90
    session.location = "Room 101"
    session.status = "scheduled"
    session.credential = None
    session.created_at = datetime(2025, 1, 1, tzinfo=timezone.utc)
    session.updated_at = datetime(2025, 1, 1, tzinfo=timezone.utc)
    return session


@pytest.fixture
def make_attendance() -> Callable[..., MagicMock]:
    """Build an attendance row as returned by the upsert."""

    def _make(
        user_id: str,
        session_id: str,
        status: str = "present",
        checked_by: str | None = None,
        notes: str | None = None,
    ) -> MagicMock:
        attendance = MagicMock()
        attendance.id = str(uuid4())
        attendance.user_id = user_id
        attendance.session_id = session_id
        attendance.status = status
        attendance.checked_at = datetime.now(timezone.utc)
        attendance.checked_by = checked_by or user_id
        attendance.notes = notes
        return attendance

    return _make
