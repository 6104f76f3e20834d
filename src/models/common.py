# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Common schema base classes.

API payloads use camelCase on the wire and snake_case in Python.
"""

from typing import Annotated
from uuid import UUID

from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def _canonical_uuid(value: str) -> str:
    return str(UUID(value))


# Identifier carried in a request body; rejected with 422 unless it parses as a UUID
UUIDStr = Annotated[str, AfterValidator(_canonical_uuid)]


class APIModel(BaseModel):
    """Base model for request and response schemas."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
