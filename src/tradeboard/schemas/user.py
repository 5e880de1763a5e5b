"""Pydantic schemas for admin user management.

Password hashes never leave the service layer: UserRead has no field
for them.
"""

import uuid
from typing import Optional

from pydantic import EmailStr, Field

from tradeboard.db.models import Role
from tradeboard.validation import (
    InputModel,
    NonEmptyStr,
    OutputModel,
    UpdateModel,
    UtcDateTime,
)


class UserCreate(InputModel):
    email: EmailStr
    password: str = Field(min_length=8)
    name: Optional[NonEmptyStr] = None
    role: Role = Role.USER
    company_id: Optional[uuid.UUID] = None


class UserUpdate(UpdateModel):
    name: Optional[NonEmptyStr] = None
    password: Optional[str] = Field(None, min_length=8)
    role: Optional[Role] = None


class UserRead(OutputModel):
    id: uuid.UUID
    email: str
    name: Optional[str]
    role: Role
    company_id: uuid.UUID
    created_at: UtcDateTime
    updated_at: UtcDateTime
