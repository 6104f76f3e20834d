# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Running async service code inside synchronous Dramatiq actors.

Dramatiq executes actors on worker threads. asyncpg connections belong to
the loop that opened them, so every worker thread keeps one long-lived
event loop and a small engine created on it. When a thread's loop is
found closed, a new loop and a new engine replace them.
"""

import asyncio
import logging
import threading
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Coroutine, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from src.core.config import get_settings
from src.infrastructure.database.connection import session_scope

logger = logging.getLogger(__name__)

T = TypeVar("T")

_local = threading.local()


def _thread_loop() -> asyncio.AbstractEventLoop:
    loop = getattr(_local, "loop", None)
    if loop is not None and not loop.is_closed():
        return loop

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    _local.loop = loop
    # The old engine's connections died with the old loop
    _local.sessionmaker = None
    logger.debug("Worker thread %s: new event loop", threading.current_thread().name)
    return loop


def _thread_sessionmaker() -> async_sessionmaker[AsyncSession]:
    maker = getattr(_local, "sessionmaker", None)
    if maker is None:
        engine = create_async_engine(
            get_settings().db.url,
            pool_size=2,
            max_overflow=2,
            pool_pre_ping=True,
        )
        maker = async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)
        _local.sessionmaker = maker
    return maker


@asynccontextmanager
async def worker_session() -> AsyncIterator[AsyncSession]:
    """Session on the current worker thread's engine.

    Raises:
        DatabaseError: When a statement fails.
    """
    async with session_scope(_thread_sessionmaker()) as session:
        yield session


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Drive ``coro`` to completion on the thread's loop and return its result.

    Example:
        @dramatiq.actor(queue_name=Queues.REMINDERS)
        def send_session_reminders(hours_ahead: int = 24) -> dict:
            async def _run() -> dict:
                async with worker_session() as session:
                    ...
            return run_async(_run())
    """
    return _thread_loop().run_until_complete(coro)
