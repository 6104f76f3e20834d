# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Check-in credential issuance and verification.

Each session holds at most one credential in its ``credential`` slot:

    {"token": ..., "numeric_code": ..., "expires_at": ...,
     "issued_by": ..., "issued_at": ...}

Issuing replaces the whole slot in a single UPDATE, so a credential
issued seconds earlier stops working immediately. The scannable token
and the 6-digit numeric code are two ways to present the same credential.

Verification runs its checks in a fixed order and stops at the first
failure: input shape, session/seminar lookup, code match, expiry,
enrollment. On success the requester's attendance is upserted as
``present``.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta
from typing import Any
from urllib.parse import urlencode

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import Settings, get_settings
from src.domains.access import SeminarAccessService
from src.domains.attendance import (
    has_approved_enrollment,
    to_attendance_response,
    upsert_attendance,
)
from src.domains.errors import (
    BadRequestError,
    ExpiredError,
    InvalidCodeError,
    NotEnrolledError,
    SessionNotFoundError,
)
from src.infrastructure.database.models import (
    AttendanceStatus,
    Seminar,
    SeminarSession,
)
from src.models.attendance import (
    CheckInResponse,
    CredentialResponse,
    VerifyCredentialRequest,
)
from src.utils.datetime import format_iso, is_expired, parse_iso, utc_now

logger = logging.getLogger(__name__)

NUMERIC_CODE_LENGTH = 6


def generate_token(num_bytes: int) -> str:
    """Random hex token carrying ``num_bytes`` bytes of entropy."""
    return secrets.token_hex(num_bytes)


def generate_numeric_code() -> str:
    """Uniform 6-digit code in 100000-999999."""
    return str(secrets.randbelow(900000) + 100000)


def _matches(stored: str | None, presented: str) -> bool:
    if not stored:
        return False
    return secrets.compare_digest(stored.encode(), presented.encode())


class CredentialService:
    """Issues and verifies session check-in credentials.

    Attributes:
        db: Async database session.
        settings: Application settings.
        access: Seminar authorization checks.
    """

    def __init__(self, db: AsyncSession, settings: Settings | None = None) -> None:
        self.db = db
        self.settings = settings or get_settings()
        self.access = SeminarAccessService(db)

    async def issue(self, session_id: str, actor_id: str) -> CredentialResponse:
        """Mint a fresh credential for a session, replacing any previous one.

        Args:
            session_id: Session identifier.
            actor_id: Acting user, must manage the session's seminar.

        Returns:
            The scan URL, numeric code, token and expiry for display.

        Raises:
            SessionNotFoundError: If the session does not exist.
            PermissionDeniedError: If the actor is neither owner nor admin.
        """
        session = await self._get_session(session_id)
        await self.access.require_manager(actor_id, session.seminar_id)

        attendance_settings = self.settings.attendance
        issued_at = utc_now()
        expires_at = issued_at + timedelta(minutes=attendance_settings.credential_ttl_minutes)
        token = generate_token(attendance_settings.token_bytes)
        numeric_code = generate_numeric_code()

        credential: dict[str, Any] = {
            "token": token,
            "numeric_code": numeric_code,
            "expires_at": format_iso(expires_at),
            "issued_by": str(actor_id),
            "issued_at": format_iso(issued_at),
        }

        await self.db.execute(
            update(SeminarSession)
            .where(SeminarSession.id == session.id)
            .values(credential=credential)
        )
        await self.db.commit()

        logger.info(
            "Credential issued: session=%s, seminar=%s, by=%s, expires_at=%s",
            session.id,
            session.seminar_id,
            actor_id,
            credential["expires_at"],
        )

        return CredentialResponse(
            session_id=str(session.id),
            seminar_id=str(session.seminar_id),
            scan_url=self.build_scan_url(token, session.id, session.seminar_id),
            numeric_code=numeric_code,
            expires_at=expires_at,
            token=token,
        )

    def build_scan_url(self, token: str, session_id: str, seminar_id: str) -> str:
        """Deep link a member's device opens after scanning the QR code."""
        base = self.settings.attendance.scan_base_url.rstrip("/")
        query = urlencode({"token": token, "session": session_id, "seminar": seminar_id})
        return f"{base}/attendance/scan?{query}"

    async def verify(
        self,
        requester_id: str,
        presented: VerifyCredentialRequest,
        seminar_id: str | None = None,
        session_id: str | None = None,
    ) -> CheckInResponse:
        """Verify a presented credential and record the requester as present.

        A token always needs the session. A numeric code may come with the
        session, or with only the seminar, in which case every session of
        the seminar that holds a credential is searched and the first match
        in session order wins.

        Args:
            requester_id: Member checking in.
            presented: Token or numeric code, with an optional expiry hint.
            seminar_id: Seminar the member is checking into.
            session_id: Session the member is checking into.

        Returns:
            The attendance record and the seminar's title.

        Raises:
            BadRequestError: Neither or both codes given, malformed code,
                or not enough context to locate the session.
            NotFoundError: Session or seminar missing, or session not in seminar.
            InvalidCodeError: No current credential matches.
            ExpiredError: The matched credential has lapsed.
            NotEnrolledError: The requester is not an approved member.
        """
        token = (presented.token or "").strip() or None
        code = (presented.numeric_code or "").strip() or None

        if token is None and code is None:
            raise BadRequestError("Provide a token or a numeric code")
        if token is not None and code is not None:
            raise BadRequestError("Provide either a token or a numeric code, not both")
        if code is not None and not (len(code) == NUMERIC_CODE_LENGTH and code.isdigit()):
            raise BadRequestError("Numeric code must be 6 digits")
        if session_id is None and (token is not None or seminar_id is None):
            raise BadRequestError("Session is required for this check-in")

        session: SeminarSession | None = None
        if session_id is not None:
            session = await self._get_session(session_id)
            if seminar_id is not None and str(session.seminar_id) != str(seminar_id):
                raise SessionNotFoundError(
                    f"Session {session_id} not found in seminar {seminar_id}"
                )
            seminar = await self.access.get_seminar(session.seminar_id)
        else:
            seminar = await self.access.get_seminar(seminar_id)

        if token is not None:
            matched = session if _matches(self._slot(session).get("token"), token) else None
        elif session is not None:
            stored = self._slot(session).get("numeric_code")
            matched = session if _matches(stored, code) else None
        else:
            matched = await self._find_by_numeric_code(seminar, code)

        if matched is None:
            logger.info(
                "Check-in rejected, no matching credential: user=%s, seminar=%s, session=%s",
                requester_id,
                seminar.id,
                session_id,
            )
            raise InvalidCodeError("Code is not valid for this session")

        now = utc_now()
        if presented.expires_at is not None:
            self._check_expiry(presented.expires_at, now)
        self._check_expiry(self._stored_expiry(matched), now)

        if not await has_approved_enrollment(self.db, requester_id, seminar.id):
            raise NotEnrolledError("You are not an approved member of this seminar")

        attendance = await upsert_attendance(
            self.db,
            user_id=requester_id,
            session_id=matched.id,
            status=AttendanceStatus.PRESENT,
            checked_by=requester_id,
            checked_at=now,
        )
        response = CheckInResponse(
            attendance=to_attendance_response(attendance),
            seminar_id=str(seminar.id),
            seminar_title=seminar.title,
        )
        await self.db.commit()

        logger.info(
            "Checked in: user=%s, session=%s, seminar=%s, via=%s",
            requester_id,
            matched.id,
            seminar.id,
            "token" if token is not None else "numeric_code",
        )

        return response

    async def _find_by_numeric_code(self, seminar: Seminar, code: str) -> SeminarSession | None:
        result = await self.db.execute(
            select(SeminarSession)
            .where(
                SeminarSession.seminar_id == seminar.id,
                SeminarSession.credential.is_not(None),
            )
            .order_by(SeminarSession.session_number)
        )
        for candidate in result.scalars().all():
            if _matches(self._slot(candidate).get("numeric_code"), code):
                return candidate
        return None

    @staticmethod
    def _slot(session: SeminarSession) -> dict[str, Any]:
        return session.credential or {}

    def _stored_expiry(self, session: SeminarSession) -> datetime | None:
        # A slot without a readable expiry never verifies
        try:
            return parse_iso(self._slot(session).get("expires_at"))
        except (AttributeError, TypeError, ValueError):
            logger.warning("Unreadable credential expiry on session %s", session.id)
            return None

    @staticmethod
    def _check_expiry(expires_at: datetime | None, now: datetime) -> None:
        if is_expired(expires_at, at=now):
            raise ExpiredError("Code has expired, ask for a new one")

    async def _get_session(self, session_id: str) -> SeminarSession:
        result = await self.db.execute(
            select(SeminarSession).where(SeminarSession.id == str(session_id))
        )
        session = result.scalar_one_or_none()
        if session is None:
            raise SessionNotFoundError(f"Session {session_id} not found")
        return session
