"""Pydantic schemas for projects.

Status is free text (the UI offers "Planning", "In Progress", ...).
Dates accept "YYYY-MM-DD" or ISO timestamps; the end may not precede
the start.
"""

import uuid
from typing import Optional

from pydantic import field_validator

from tradeboard.validation import (
    DateTimeField,
    InputModel,
    NonEmptyStr,
    OptionalText,
    OutputModel,
    UpdateModel,
    UtcDateTime,
    end_not_before_start,
)


class ProjectCreate(InputModel):
    name: NonEmptyStr
    status: NonEmptyStr
    client_id: Optional[uuid.UUID] = None
    address: OptionalText = None
    notes: OptionalText = None
    start_date: DateTimeField = None
    end_date: DateTimeField = None

    @field_validator("end_date")
    @classmethod
    def check_dates(cls, value, info):
        return end_not_before_start(value, info)


class ProjectUpdate(UpdateModel):
    name: Optional[NonEmptyStr] = None
    status: Optional[NonEmptyStr] = None
    client_id: Optional[uuid.UUID] = None
    address: OptionalText = None
    notes: OptionalText = None
    start_date: DateTimeField = None
    end_date: DateTimeField = None

    @field_validator("end_date")
    @classmethod
    def check_dates(cls, value, info):
        return end_not_before_start(value, info)


class ClientSummary(OutputModel):
    id: uuid.UUID
    name: str


class ProjectRead(OutputModel):
    id: uuid.UUID
    name: str
    status: str
    client_id: Optional[uuid.UUID]
    client: Optional[ClientSummary] = None
    address: Optional[str]
    notes: Optional[str]
    start_date: Optional[UtcDateTime]
    end_date: Optional[UtcDateTime]
    author_id: uuid.UUID
    company_id: uuid.UUID
    created_at: UtcDateTime
    updated_at: UtcDateTime
