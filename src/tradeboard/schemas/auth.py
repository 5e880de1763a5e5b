"""Pydantic schemas for login and registration."""

import uuid
from typing import Optional

from pydantic import EmailStr, Field

from tradeboard.db.models import Role
from tradeboard.validation import InputModel, NonEmptyStr, OutputModel


class LoginRequest(InputModel):
    email: EmailStr
    password: str = Field(min_length=1)


class RegisterRequest(InputModel):
    email: EmailStr
    password: str = Field(min_length=8)
    name: Optional[NonEmptyStr] = None
    company_id: uuid.UUID


class TokenResponse(OutputModel):
    access_token: str
    token_type: str = "bearer"


class MeRead(OutputModel):
    """The caller's token claims plus profile fields."""
    user_id: uuid.UUID
    email: str
    name: Optional[str] = None
    role: Role
    company_id: uuid.UUID
