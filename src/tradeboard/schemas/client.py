"""Pydantic schemas for clients.

- ClientCreate: what you POST (name required, contact fields optional)
- ClientUpdate: what you PUT (any subset, at least one field)
- ClientRead: what the API returns
"""

import uuid
from typing import Optional

from tradeboard.validation import (
    InputModel,
    NonEmptyStr,
    OptionalEmail,
    OptionalText,
    OutputModel,
    UpdateModel,
    UtcDateTime,
)


class ClientCreate(InputModel):
    name: NonEmptyStr
    email: OptionalEmail = None
    phone: OptionalText = None
    address: OptionalText = None


class ClientUpdate(UpdateModel):
    name: Optional[NonEmptyStr] = None
    email: OptionalEmail = None
    phone: OptionalText = None
    address: OptionalText = None


class ClientRead(OutputModel):
    id: uuid.UUID
    name: str
    email: Optional[str]
    phone: Optional[str]
    address: Optional[str]
    company_id: uuid.UUID
    created_at: UtcDateTime
    updated_at: UtcDateTime
