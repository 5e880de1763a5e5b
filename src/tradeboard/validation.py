"""Request validation building blocks.

Learn: Every endpoint declares pydantic schemas for its body, path and
query; FastAPI runs them before the handler, so services only ever see
validated, coerced data (date strings become datetimes, "3" becomes 3).
The shared pieces live here:

- InputModel     → strict (unknown fields rejected), camelCase aliases
- UpdateModel    → InputModel that needs at least one field present
- OutputModel    → camelCase, read from ORM attributes
- DateTimeField  → "2024-03-01" → 2024-03-01T00:00:00+00:00
- UtcDateTime    → timestamps read back from storage, always tz-aware
- TrimmedStr / NonEmptyStr
- end_not_before_start → the startDate/endDate cross-field check
- query_model()  → strict query-string validation as a dependency

Failures of any of them end up as one 400 response:
{"message": "Validation failed", "errors": {"field": ["..."]}}.
"""

from datetime import date, datetime, time, timezone
from typing import Annotated, Any, Callable, Optional, TypeVar

from fastapi import Request
from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    EmailStr,
    StringConstraints,
    ValidationError,
    ValidationInfo,
    model_validator,
)
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from tradeboard.errors import ValidationFailed, field_errors

M = TypeVar("M", bound=BaseModel)

NO_UPDATE_DATA = "No update data provided. Must provide at least one field to update."


def parse_datetime(value: Any) -> Any:
    """Coerce textual dates to timezone-aware UTC datetimes.

    Accepts "YYYY-MM-DD" (midnight UTC), full ISO-8601 timestamps (a
    trailing "Z" included; naive ones are read as UTC), date and datetime
    objects. None passes through; anything else is rejected.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise PydanticCustomError("date_format", "Invalid date format")
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    raise PydanticCustomError("date_type", "Invalid date format")


DateTimeField = Annotated[Optional[datetime], BeforeValidator(parse_datetime)]

TrimmedStr = Annotated[str, StringConstraints(strip_whitespace=True)]
NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


def blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


# Optional fields the frontend may send as "" to mean "clear it"
OptionalText = Annotated[Optional[TrimmedStr], BeforeValidator(blank_to_none)]
OptionalEmail = Annotated[Optional[EmailStr], BeforeValidator(blank_to_none)]


def end_not_before_start(value: Optional[datetime], info: ValidationInfo) -> Optional[datetime]:
    """field_validator body for end_date; start_date must be declared first."""
    start = info.data.get("start_date")
    if value is not None and start is not None and value < start:
        raise PydanticCustomError(
            "date_order", "End date cannot be earlier than start date"
        )
    return value


class InputModel(BaseModel):
    """Base for request bodies: strict and camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


class UpdateModel(InputModel):
    """Partial update — only fields actually sent are applied."""

    @model_validator(mode="after")
    def require_some_field(self):
        if not self.model_fields_set:
            raise PydanticCustomError("no_update_data", NO_UPDATE_DATA)
        return self

    def changes(self) -> dict:
        """The sent fields, by attribute name, ready to setattr() on a row."""
        return self.model_dump(exclude_unset=True)


class OutputModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def query_model(model: type[M]) -> Callable[[Request], M]:
    """Build a dependency that validates the whole query string against `model`.

    FastAPI's own Query() parameters ignore unknown keys; this does not.
    """

    def dependency(request: Request) -> M:
        try:
            return model.model_validate(dict(request.query_params))
        except ValidationError as e:
            raise ValidationFailed(field_errors(e.errors()))

    return dependency


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; everything stored is UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


UtcDateTime = Annotated[datetime, AfterValidator(as_utc)]
