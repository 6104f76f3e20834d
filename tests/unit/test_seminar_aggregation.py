# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for seminar date span aggregation."""

from datetime import date, datetime, timedelta, timezone
from uuid import uuid4

import pytest
from sqlalchemy.dialects import postgresql

from src.domains.errors import PermissionDeniedError
from src.domains.seminar import SeminarDateAggregator, compute_date_span


def _utc(year, month, day, hour=12):
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


class TestComputeDateSpan:
    """Tests for the pure span computation."""

    def test_span_ignores_insertion_order(self):
        """Test the span is min and max regardless of order."""
        dates = [_utc(2025, 1, 20), _utc(2025, 2, 10), _utc(2025, 1, 5)]

        assert compute_date_span(dates) == (date(2025, 1, 5), date(2025, 2, 10))

    def test_empty_span(self):
        """Test a seminar without sessions has no dates."""
        assert compute_date_span([]) == (None, None)

    def test_single_session(self):
        """Test one session gives equal start and end."""
        assert compute_date_span([_utc(2025, 3, 1)]) == (date(2025, 3, 1), date(2025, 3, 1))

    def test_uses_utc_calendar_date(self):
        """Test instants are projected to their UTC date."""
        late_evening_new_york = datetime(
            2025, 1, 5, 22, 30, tzinfo=timezone(timedelta(hours=-5))
        )

        assert compute_date_span([late_evening_new_york]) == (date(2025, 1, 6), date(2025, 1, 6))


class TestSeminarDateAggregator:
    """Tests for recalculation against the store."""

    @pytest.mark.asyncio
    async def test_recalculate_writes_span(self, mock_db, make_result):
        """Test the computed span is written to the seminar."""
        seminar_id = str(uuid4())
        mock_db.execute.side_effect = [
            make_result(scalars=[_utc(2025, 1, 20), _utc(2025, 2, 10), _utc(2025, 1, 5)]),
            make_result(),
        ]

        span = await SeminarDateAggregator(mock_db).recalculate(seminar_id)

        assert span.start_date == date(2025, 1, 5)
        assert span.end_date == date(2025, 2, 10)
        params = mock_db.execute.call_args_list[1].args[0].compile(
            dialect=postgresql.dialect()
        ).params
        assert params["start_date"] == date(2025, 1, 5)
        assert params["end_date"] == date(2025, 2, 10)
        mock_db.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_recalculate_clears_span_without_sessions(self, mock_db, make_result):
        """Test deleting the last session nulls both dates."""
        mock_db.execute.side_effect = [make_result(scalars=[]), make_result()]

        span = await SeminarDateAggregator(mock_db).recalculate(str(uuid4()))

        assert span.start_date is None
        assert span.end_date is None

    @pytest.mark.asyncio
    async def test_recalculate_all_requires_admin(self, mock_db, make_result):
        """Test only admins may recompute every seminar."""
        mock_db.execute.return_value = make_result(scalar="member")

        with pytest.raises(PermissionDeniedError):
            await SeminarDateAggregator(mock_db).recalculate_all(str(uuid4()))

    @pytest.mark.asyncio
    async def test_recalculate_all(self, mock_db, make_result):
        """Test every seminar is recomputed in one commit."""
        first, second = str(uuid4()), str(uuid4())
        mock_db.execute.side_effect = [
            make_result(scalar="admin"),
            make_result(scalars=[first, second]),
            make_result(scalars=[_utc(2025, 4, 1)]),
            make_result(),
            make_result(scalars=[]),
            make_result(),
        ]

        result = await SeminarDateAggregator(mock_db).recalculate_all(str(uuid4()))

        assert result.total == 2
        assert result.items[0].seminar_id == first
        assert result.items[0].start_date == date(2025, 4, 1)
        assert result.items[1].start_date is None
        mock_db.commit.assert_called_once()
