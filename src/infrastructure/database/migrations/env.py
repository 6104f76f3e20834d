# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Alembic environment for the seminar attendance schema.

The target URL is ``DATABASE_URL`` when set, otherwise the ``DB_*``
settings. Online runs use the asyncpg engine the service itself uses.

Usage:
    alembic upgrade head
    alembic upgrade head --sql > schema.sql
"""

import asyncio
import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.ext.asyncio import create_async_engine

from src.core.config import get_settings
from src.infrastructure.database.models import Base

if context.config.config_file_name is not None:
    fileConfig(context.config.config_file_name)

# Autogenerate also diffs column types and server defaults
COMPARE_OPTIONS = {"compare_type": True, "compare_server_default": True}


def database_url() -> str:
    return os.environ.get("DATABASE_URL") or get_settings().db.url


def _migrate(**configure_options) -> None:
    context.configure(target_metadata=Base.metadata, **COMPARE_OPTIONS, **configure_options)
    with context.begin_transaction():
        context.run_migrations()


def run_offline() -> None:
    """Render SQL without connecting."""
    _migrate(
        url=database_url(),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )


async def run_online() -> None:
    engine = create_async_engine(database_url(), poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(lambda sync_conn: _migrate(connection=sync_conn))
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_offline()
else:
    asyncio.run(run_online())
