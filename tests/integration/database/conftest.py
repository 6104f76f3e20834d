# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest fixtures for database integration tests.

Provides a throwaway schema on the PostgreSQL instance named by
``TEST_DATABASE_URL``. Tests in this package are skipped without it.
"""

import os
from datetime import datetime, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from src.infrastructure.database.models import Base, Enrollment, Seminar, SeminarSession, User


@pytest.fixture(scope="session")
def database_url() -> str:
    """Get database URL for tests."""
    url = os.environ.get("TEST_DATABASE_URL")
    if not url:
        pytest.skip("TEST_DATABASE_URL not set")
    return url


@pytest_asyncio.fixture(scope="function")
async def db_engine(database_url: str):
    """Create async engine with a fresh schema."""
    engine = create_async_engine(database_url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create async session for database tests."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def seeded(db_session: AsyncSession) -> dict:
    """An owner, an approved member and a seminar with one session."""
    owner = User(email="owner@example.com", name="Owner", role="member")
    member = User(email="member@example.com", name="Member", role="member")
    db_session.add_all([owner, member])
    await db_session.flush()

    seminar = Seminar(owner_id=owner.id, title="Distributed Systems", capacity=20)
    db_session.add(seminar)
    await db_session.flush()

    session = SeminarSession(
        seminar_id=seminar.id,
        session_number=1,
        title="Consensus",
        date=datetime(2025, 1, 20, 18, 0, tzinfo=timezone.utc),
    )
    enrollment = Enrollment(user_id=member.id, seminar_id=seminar.id, status="approved")
    db_session.add_all([session, enrollment])
    await db_session.commit()

    return {"owner": owner, "member": member, "seminar": seminar, "session": session}
