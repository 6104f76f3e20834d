# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Async engine and session lifecycle for the API process.

``init_database`` builds one asyncpg engine per process at startup and
``get_session`` hands out sessions from it. Dramatiq workers run on their
own event loops and build per-thread engines in
``src.infrastructure.background.tasks.base``; both paths share
``session_scope`` so commit, rollback and error wrapping behave the same.
"""

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncIterator

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

if TYPE_CHECKING:
    from src.core.config.settings import Settings

_engine: AsyncEngine | None = None
_sessionmaker: async_sessionmaker[AsyncSession] | None = None


class DatabaseError(Exception):
    """The store failed or is not available.

    Attributes:
        message: What was being attempted.
        original_error: Underlying SQLAlchemy/driver error, if any.
    """

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        if self.original_error is None:
            return self.message
        return f"{self.message}: {self.original_error}"


async def init_database(settings: "Settings") -> None:
    """Create the process engine; repeated calls keep the first one.

    Raises:
        DatabaseError: If the engine cannot be created from the settings.
    """
    global _engine, _sessionmaker
    if _engine is not None:
        return

    try:
        engine = create_async_engine(
            settings.db.url,
            pool_size=settings.db.pool_size,
            max_overflow=settings.db.max_overflow,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to initialize database connection", e) from e

    _engine = engine
    _sessionmaker = async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)


async def close_database() -> None:
    global _engine, _sessionmaker
    if _engine is None:
        return
    await _engine.dispose()
    _engine, _sessionmaker = None, None


@asynccontextmanager
async def session_scope(maker: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    """Open a session, commit when the block exits cleanly, roll back otherwise.

    Raises:
        DatabaseError: Wrapping any SQLAlchemyError raised inside the block.
    """
    async with maker() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            raise DatabaseError("Database operation failed", e) from e
        except BaseException:
            await session.rollback()
            raise


@asynccontextmanager
async def get_session() -> AsyncIterator[AsyncSession]:
    """Session from the process engine.

    Raises:
        DatabaseError: Before ``init_database`` or when a statement fails.
    """
    if _sessionmaker is None:
        raise DatabaseError("Database not initialized. Call init_database() first.")
    async with session_scope(_sessionmaker) as session:
        yield session


async def check_database_connection() -> bool:
    """Round-trip ``SELECT 1``; False when uninitialized or unreachable."""
    if _engine is None:
        return False
    try:
        async with _engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError):
        return False
    return True
