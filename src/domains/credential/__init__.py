# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Credential domain: short-lived session check-in codes."""

from src.domains.credential.service import (
    NUMERIC_CODE_LENGTH,
    CredentialService,
    generate_numeric_code,
    generate_token,
)

__all__ = [
    "CredentialService",
    "NUMERIC_CODE_LENGTH",
    "generate_numeric_code",
    "generate_token",
]
