# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for check-in credential issuance and verification."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from sqlalchemy.dialects import postgresql

from src.domains.credential.service import (
    CredentialService,
    generate_numeric_code,
    generate_token,
)
from src.domains.errors import (
    BadRequestError,
    ExpiredError,
    InvalidCodeError,
    NotEnrolledError,
    PermissionDeniedError,
    SessionNotFoundError,
)
from src.infrastructure.database.models import AttendanceStatus
from src.models.attendance import VerifyCredentialRequest
from src.utils.datetime import format_iso

ISSUED_AT = datetime(2025, 3, 4, 18, 0, tzinfo=timezone.utc)
EXPIRES_AT = ISSUED_AT + timedelta(minutes=10)
TOKEN = "a" * 32


@pytest.fixture
def credential_service(mock_db):
    """Create credential service with mock database."""
    return CredentialService(db=mock_db)


@pytest.fixture
def issued_session(sample_session, owner_id):
    """Session holding a credential issued at ISSUED_AT."""
    sample_session.credential = {
        "token": TOKEN,
        "numeric_code": "482913",
        "expires_at": format_iso(EXPIRES_AT),
        "issued_by": owner_id,
        "issued_at": format_iso(ISSUED_AT),
    }
    return sample_session


def _at(moment):
    return patch("src.domains.credential.service.utc_now", return_value=moment)


class TestGenerators:
    """Tests for token and code generation."""

    def test_numeric_code_is_six_digits(self):
        """Test codes are always in 100000-999999."""
        for _ in range(200):
            code = generate_numeric_code()
            assert len(code) == 6
            assert code.isdigit()
            assert 100000 <= int(code) <= 999999

    def test_token_entropy(self):
        """Test tokens carry the requested number of bytes."""
        token = generate_token(16)
        assert len(token) == 32
        assert generate_token(16) != token


class TestIssueCredential:
    """Tests for credential issuance."""

    @pytest.mark.asyncio
    async def test_issue_replaces_slot(
        self, credential_service, mock_db, make_result, sample_session, sample_seminar, owner_id
    ):
        """Test issuing writes one slot with a ten minute lifetime."""
        mock_db.execute.side_effect = [
            make_result(scalar=sample_session),
            make_result(scalar=sample_seminar),
            make_result(),
        ]

        with _at(ISSUED_AT), patch(
            "src.domains.credential.service.generate_numeric_code", return_value="482913"
        ):
            result = await credential_service.issue(sample_session.id, owner_id)

        assert result.numeric_code == "482913"
        assert result.expires_at == EXPIRES_AT
        assert result.session_id == sample_session.id
        assert result.seminar_id == sample_seminar.id
        assert f"token={result.token}" in result.scan_url
        assert f"session={sample_session.id}" in result.scan_url
        assert f"seminar={sample_seminar.id}" in result.scan_url
        mock_db.commit.assert_called_once()

        update_stmt = mock_db.execute.call_args_list[2].args[0]
        params = update_stmt.compile(dialect=postgresql.dialect()).params
        stored = params["credential"]
        assert stored["token"] == result.token
        assert stored["numeric_code"] == "482913"
        assert stored["expires_at"] == format_iso(EXPIRES_AT)
        assert stored["issued_by"] == owner_id

    @pytest.mark.asyncio
    async def test_issue_requires_manager(
        self, credential_service, mock_db, make_result, sample_session, sample_seminar, member_id
    ):
        """Test members cannot issue credentials."""
        mock_db.execute.side_effect = [
            make_result(scalar=sample_session),
            make_result(scalar=sample_seminar),
            make_result(scalar="member"),
        ]

        with pytest.raises(PermissionDeniedError):
            await credential_service.issue(sample_session.id, member_id)

        mock_db.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_issue_session_not_found(self, credential_service, mock_db, make_result, owner_id):
        """Test issuing for a missing session."""
        mock_db.execute.return_value = make_result(scalar=None)

        with pytest.raises(SessionNotFoundError):
            await credential_service.issue(str(uuid4()), owner_id)


class TestVerifyInputShape:
    """Tests for the checks that run before any lookup."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "presented",
        [
            VerifyCredentialRequest(),
            VerifyCredentialRequest(token=TOKEN, numeric_code="482913"),
            VerifyCredentialRequest(numeric_code="12345"),
            VerifyCredentialRequest(numeric_code="48291a"),
        ],
    )
    async def test_malformed_input(self, credential_service, mock_db, member_id, presented):
        """Test neither/both codes and malformed codes are bad requests."""
        with pytest.raises(BadRequestError):
            await credential_service.verify(member_id, presented, session_id=str(uuid4()))

        mock_db.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_token_requires_session(self, credential_service, mock_db, member_id):
        """Test a token alone cannot locate a session."""
        with pytest.raises(BadRequestError):
            await credential_service.verify(
                member_id, VerifyCredentialRequest(token=TOKEN), seminar_id=str(uuid4())
            )

        mock_db.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_session_must_belong_to_seminar(
        self, credential_service, mock_db, make_result, issued_session, member_id
    ):
        """Test a session from another seminar reads as not found."""
        mock_db.execute.return_value = make_result(scalar=issued_session)

        with pytest.raises(SessionNotFoundError):
            await credential_service.verify(
                member_id,
                VerifyCredentialRequest(numeric_code="482913"),
                seminar_id=str(uuid4()),
                session_id=issued_session.id,
            )


class TestVerifyCredential:
    """Tests for code matching, expiry and the enrollment gate."""

    @pytest.mark.asyncio
    async def test_token_check_in_records_present(
        self,
        credential_service,
        mock_db,
        make_result,
        make_attendance,
        issued_session,
        sample_seminar,
        member_id,
    ):
        """Test a valid token upserts a present row and commits."""
        attendance = make_attendance(member_id, issued_session.id)
        mock_db.execute.side_effect = [
            make_result(scalar=issued_session),
            make_result(scalar=sample_seminar),
            make_result(scalar="approved"),
            make_result(scalar=attendance),
        ]

        with _at(ISSUED_AT + timedelta(minutes=2)):
            result = await credential_service.verify(
                member_id, VerifyCredentialRequest(token=TOKEN), session_id=issued_session.id
            )

        assert result.attendance.status == "present"
        assert result.attendance.user_id == member_id
        assert result.seminar_title == sample_seminar.title
        mock_db.commit.assert_called_once()

    @pytest.mark.asyncio
    async def test_numeric_code_valid_at_nine_minutes_expired_at_eleven(
        self,
        credential_service,
        mock_db,
        make_result,
        make_attendance,
        issued_session,
        sample_seminar,
        member_id,
    ):
        """Test code 482913 works at +9 minutes and is expired at +11."""
        attendance = make_attendance(member_id, issued_session.id)
        mock_db.execute.side_effect = [
            make_result(scalar=sample_seminar),
            make_result(scalars=[issued_session]),
            make_result(scalar="approved"),
            make_result(scalar=attendance),
        ]

        with _at(ISSUED_AT + timedelta(minutes=9)):
            result = await credential_service.verify(
                member_id,
                VerifyCredentialRequest(numeric_code="482913"),
                seminar_id=sample_seminar.id,
            )
        assert result.attendance.status == "present"

        mock_db.execute.side_effect = [
            make_result(scalar=sample_seminar),
            make_result(scalars=[issued_session]),
        ]
        mock_db.commit.reset_mock()

        with _at(ISSUED_AT + timedelta(minutes=11)), pytest.raises(ExpiredError) as exc_info:
            await credential_service.verify(
                member_id,
                VerifyCredentialRequest(numeric_code="482913"),
                seminar_id=sample_seminar.id,
            )
        assert exc_info.value.code == "expired"
        mock_db.commit.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("offset", "expired"),
        [
            (timedelta(seconds=-1), False),
            (timedelta(0), False),
            (timedelta(seconds=1), True),
        ],
    )
    async def test_expiry_boundary(
        self,
        credential_service,
        mock_db,
        make_result,
        make_attendance,
        issued_session,
        sample_seminar,
        member_id,
        offset,
        expired,
    ):
        """Test a credential is valid up to and including its expiry instant."""
        mock_db.execute.side_effect = [
            make_result(scalar=issued_session),
            make_result(scalar=sample_seminar),
            make_result(scalar="approved"),
            make_result(scalar=make_attendance(member_id, issued_session.id)),
        ]
        presented = VerifyCredentialRequest(numeric_code="482913")

        with _at(EXPIRES_AT + offset):
            if expired:
                with pytest.raises(ExpiredError):
                    await credential_service.verify(
                        member_id, presented, session_id=issued_session.id
                    )
            else:
                result = await credential_service.verify(
                    member_id, presented, session_id=issued_session.id
                )
                assert result.attendance.status == "present"

    @pytest.mark.asyncio
    async def test_client_expiry_hint_is_checked(
        self, credential_service, mock_db, make_result, issued_session, sample_seminar, member_id
    ):
        """Test a lapsed client-supplied expiry fails even if the slot is current."""
        mock_db.execute.side_effect = [
            make_result(scalar=issued_session),
            make_result(scalar=sample_seminar),
        ]
        presented = VerifyCredentialRequest(
            token=TOKEN, expires_at=ISSUED_AT + timedelta(minutes=1)
        )

        with _at(ISSUED_AT + timedelta(minutes=2)), pytest.raises(ExpiredError):
            await credential_service.verify(member_id, presented, session_id=issued_session.id)

    @pytest.mark.asyncio
    async def test_replaced_credential_is_invalid(
        self, credential_service, mock_db, make_result, issued_session, sample_seminar, member_id
    ):
        """Test only the most recently issued credential is accepted."""
        issued_session.credential = {
            **issued_session.credential,
            "token": "b" * 32,
            "numeric_code": "731506",
        }
        mock_db.execute.side_effect = [
            make_result(scalar=issued_session),
            make_result(scalar=sample_seminar),
        ]

        with _at(ISSUED_AT + timedelta(minutes=1)), pytest.raises(InvalidCodeError) as exc_info:
            await credential_service.verify(
                member_id, VerifyCredentialRequest(token=TOKEN), session_id=issued_session.id
            )
        assert exc_info.value.code == "invalid_code"

    @pytest.mark.asyncio
    async def test_session_without_credential_is_invalid(
        self, credential_service, mock_db, make_result, sample_session, sample_seminar, member_id
    ):
        """Test a session that was never issued a credential rejects codes."""
        mock_db.execute.side_effect = [
            make_result(scalar=sample_session),
            make_result(scalar=sample_seminar),
        ]

        with pytest.raises(InvalidCodeError):
            await credential_service.verify(
                member_id,
                VerifyCredentialRequest(numeric_code="482913"),
                session_id=sample_session.id,
            )

    @pytest.mark.asyncio
    async def test_invalid_code_checked_before_expiry(
        self, credential_service, mock_db, make_result, issued_session, sample_seminar, member_id
    ):
        """Test a wrong code on a lapsed slot reports invalid_code, not expired."""
        mock_db.execute.side_effect = [
            make_result(scalar=issued_session),
            make_result(scalar=sample_seminar),
        ]

        with _at(EXPIRES_AT + timedelta(hours=1)), pytest.raises(InvalidCodeError):
            await credential_service.verify(
                member_id,
                VerifyCredentialRequest(numeric_code="000000"),
                session_id=issued_session.id,
            )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("enrollment_status", ["pending", "rejected", "cancelled", None])
    async def test_not_enrolled(
        self,
        credential_service,
        mock_db,
        make_result,
        issued_session,
        sample_seminar,
        member_id,
        enrollment_status,
    ):
        """Test a valid code is refused unless the enrollment is approved, and nothing is written."""
        mock_db.execute.side_effect = [
            make_result(scalar=issued_session),
            make_result(scalar=sample_seminar),
            make_result(scalar=enrollment_status),
        ]

        with _at(ISSUED_AT + timedelta(minutes=1)), pytest.raises(NotEnrolledError) as exc_info:
            await credential_service.verify(
                member_id, VerifyCredentialRequest(token=TOKEN), session_id=issued_session.id
            )

        assert exc_info.value.code == "not_enrolled"
        assert mock_db.execute.call_count == 3
        mock_db.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_second_check_in_overwrites_checked_at(
        self,
        credential_service,
        mock_db,
        make_result,
        make_attendance,
        issued_session,
        sample_seminar,
        member_id,
    ):
        """Test checking in twice upserts the same row again with the later time."""
        first_at = ISSUED_AT + timedelta(minutes=1)
        second_at = ISSUED_AT + timedelta(minutes=4)
        mock_db.execute.side_effect = [
            make_result(scalar=issued_session),
            make_result(scalar=sample_seminar),
            make_result(scalar="approved"),
            make_result(scalar=make_attendance(member_id, issued_session.id)),
            make_result(scalar=issued_session),
            make_result(scalar=sample_seminar),
            make_result(scalar="approved"),
            make_result(scalar=make_attendance(member_id, issued_session.id)),
        ]
        presented = VerifyCredentialRequest(token=TOKEN)

        for moment in (first_at, second_at):
            with _at(moment):
                await credential_service.verify(member_id, presented, session_id=issued_session.id)

        first, second = (
            mock_db.execute.call_args_list[index].args[0] for index in (3, 7)
        )
        for stmt in (first, second):
            sql = str(stmt.compile(dialect=postgresql.dialect()))
            assert "ON CONFLICT (user_id, session_id) DO UPDATE" in sql
        assert first.compile(dialect=postgresql.dialect()).params["checked_at"] == first_at
        assert second.compile(dialect=postgresql.dialect()).params["checked_at"] == second_at
        assert mock_db.commit.call_count == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("stored_expiry", [None, "", "not-a-timestamp", 1741111200])
    async def test_slot_without_readable_expiry_is_expired(
        self,
        credential_service,
        mock_db,
        make_result,
        issued_session,
        sample_seminar,
        member_id,
        stored_expiry,
    ):
        """Test a matching slot whose expiry is missing or unreadable never verifies."""
        if stored_expiry is None:
            del issued_session.credential["expires_at"]
        else:
            issued_session.credential["expires_at"] = stored_expiry
        mock_db.execute.side_effect = [
            make_result(scalar=issued_session),
            make_result(scalar=sample_seminar),
        ]

        with _at(ISSUED_AT + timedelta(minutes=1)), pytest.raises(ExpiredError):
            await credential_service.verify(
                member_id, VerifyCredentialRequest(token=TOKEN), session_id=issued_session.id
            )

        mock_db.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_numeric_collision_takes_first_session(
        self, credential_service, mock_db, make_result, sample_seminar, member_id, owner_id
    ):
        """Test a code shared by two sessions resolves to the lower session number."""
        credential = {
            "token": TOKEN,
            "numeric_code": "482913",
            "expires_at": format_iso(EXPIRES_AT),
            "issued_by": owner_id,
            "issued_at": format_iso(ISSUED_AT),
        }
        first, second = MagicMock(), MagicMock()
        first.id, second.id = str(uuid4()), str(uuid4())
        first.credential = dict(credential)
        second.credential = dict(credential, token="c" * 32)

        mock_db.execute.side_effect = [
            make_result(scalar=sample_seminar),
            make_result(scalars=[first, second]),
            make_result(scalar="approved"),
        ]
        upsert = AsyncMock()
        upsert.return_value = MagicMock(
            id=str(uuid4()),
            user_id=member_id,
            session_id=first.id,
            status="present",
            checked_at=ISSUED_AT,
            checked_by=member_id,
            notes=None,
        )

        with _at(ISSUED_AT + timedelta(minutes=1)), patch(
            "src.domains.credential.service.upsert_attendance", upsert
        ):
            await credential_service.verify(
                member_id,
                VerifyCredentialRequest(numeric_code="482913"),
                seminar_id=sample_seminar.id,
            )

        assert upsert.call_args.kwargs["session_id"] == first.id
        assert upsert.call_args.kwargs["status"] == AttendanceStatus.PRESENT
        assert upsert.call_args.kwargs["checked_by"] == member_id
