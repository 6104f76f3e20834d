# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""UTC helpers.

Columns are TIMESTAMPTZ and every datetime the services touch is aware.
Naive values reaching these helpers are read as UTC. Credential expiry
instants travel as ISO 8601 strings inside the JSONB slot, so
``format_iso`` and ``parse_iso`` are the only converters used for them.
"""

from datetime import date, datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Return ``dt`` as an aware UTC datetime; naive input is tagged as UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_utc_date(dt: datetime) -> date:
    """Calendar date of the instant in UTC."""
    return ensure_utc(dt).date()


def is_expired(expiry: datetime | None, at: datetime | None = None) -> bool:
    """Whether ``expiry`` lies strictly before ``at`` (default: now).

    A missing expiry counts as expired; the expiry instant itself does not.
    """
    if expiry is None:
        return True
    reference = utc_now() if at is None else ensure_utc(at)
    return ensure_utc(expiry) < reference


def format_iso(dt: datetime | None) -> str | None:
    return None if dt is None else ensure_utc(dt).isoformat()


def parse_iso(value: str | None) -> datetime | None:
    """Parse an ISO 8601 string, accepting a trailing ``Z``.

    Raises:
        ValueError: If ``value`` is not ISO 8601.
    """
    if value is None:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(value))
