# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for datetime helpers."""

from datetime import date, datetime, timedelta, timezone

import pytest

from src.utils.datetime import ensure_utc, format_iso, is_expired, parse_iso, to_utc_date

EXPIRY = datetime(2025, 3, 1, 12, 10, tzinfo=timezone.utc)


class TestIsExpired:
    """Tests for the strict expiry comparison."""

    def test_before_expiry(self) -> None:
        assert is_expired(EXPIRY, EXPIRY - timedelta(seconds=1)) is False

    def test_at_expiry_is_still_valid(self) -> None:
        """Test the expiry instant itself has not passed."""
        assert is_expired(EXPIRY, EXPIRY) is False

    def test_after_expiry(self) -> None:
        assert is_expired(EXPIRY, EXPIRY + timedelta(seconds=1)) is True

    def test_missing_expiry(self) -> None:
        assert is_expired(None) is True

    def test_naive_values_treated_as_utc(self) -> None:
        """Test naive datetimes compare as UTC."""
        naive = EXPIRY.replace(tzinfo=None)

        assert is_expired(naive, EXPIRY) is False
        assert is_expired(EXPIRY, naive + timedelta(minutes=1)) is True


class TestConversions:
    """Tests for UTC normalisation and ISO handling."""

    def test_ensure_utc_converts_offsets(self) -> None:
        """Test an aware datetime is shifted to UTC."""
        plus_two = timezone(timedelta(hours=2))
        value = datetime(2025, 3, 1, 14, 10, tzinfo=plus_two)

        assert ensure_utc(value) == EXPIRY
        assert ensure_utc(value).tzinfo == timezone.utc

    def test_to_utc_date_crosses_midnight(self) -> None:
        """Test the calendar date is taken in UTC, not local time."""
        late_evening = datetime(2025, 1, 20, 23, 30, tzinfo=timezone(timedelta(hours=-5)))

        assert to_utc_date(late_evening) == date(2025, 1, 21)

    def test_parse_iso_accepts_z_suffix(self) -> None:
        assert parse_iso("2025-03-01T12:10:00Z") == EXPIRY

    def test_format_then_parse(self) -> None:
        assert parse_iso(format_iso(EXPIRY)) == EXPIRY

    def test_none_passthrough(self) -> None:
        assert format_iso(None) is None
        assert parse_iso(None) is None

    def test_parse_iso_rejects_garbage(self) -> None:
        with pytest.raises(ValueError):
            parse_iso("not-a-date")
