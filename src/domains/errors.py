# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared error taxonomy for domain services.

Every error carries a stable machine ``code`` the UI can branch on,
for example "scan again" for ``invalid_code``/``expired`` versus
"ask to be enrolled" for ``not_enrolled``.
"""


class SeminarServiceError(Exception):
    """Base exception for domain service errors.

    Attributes:
        code: Stable machine-readable error code.
        message: Human-readable message.
    """

    code = "internal"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        """Serialize as an API error detail."""
        return {"code": self.code, "message": self.message}


class BadRequestError(SeminarServiceError):
    """Raised when client input is malformed."""

    code = "bad_request"


class NotFoundError(SeminarServiceError):
    """Raised when a referenced entity does not exist."""

    code = "not_found"


class PermissionDeniedError(SeminarServiceError):
    """Raised when the actor is not allowed to perform the operation."""

    code = "permission_denied"


class ConflictError(SeminarServiceError):
    """Raised when the operation would violate a uniqueness rule."""

    code = "conflict"


class InvalidCodeError(SeminarServiceError):
    """Raised when no current credential matches the presented code."""

    code = "invalid_code"


class ExpiredError(SeminarServiceError):
    """Raised when the matched credential has lapsed."""

    code = "expired"


class NotEnrolledError(SeminarServiceError):
    """Raised when the user has no approved enrollment in the seminar."""

    code = "not_enrolled"


class SeminarNotFoundError(NotFoundError):
    """Raised when a seminar does not exist."""


class SessionNotFoundError(NotFoundError):
    """Raised when a session does not exist."""


class EnrollmentNotFoundError(NotFoundError):
    """Raised when an enrollment does not exist."""


class UserNotFoundError(NotFoundError):
    """Raised when a user does not exist."""


class AlreadyEnrolledError(ConflictError):
    """Raised when the user already has an enrollment for the seminar."""
