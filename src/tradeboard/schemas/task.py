"""Pydantic schemas for tasks.

- TaskCreate: what you POST (title + projectId required)
- TaskUpdate: what you PUT (projectId is fixed once created)
- TaskListQuery: GET /tasks?projectId=... (no other parameters allowed)
- TaskRead: what the API returns, with a small assignee summary
"""

import uuid
from typing import Optional

from pydantic import Field, field_validator

from tradeboard.db.models import TaskStatus
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


class TaskCreate(InputModel):
    title: NonEmptyStr
    project_id: uuid.UUID
    status: Optional[TaskStatus] = None
    notes: OptionalText = None
    start_date: DateTimeField = None
    end_date: DateTimeField = None
    priority: Optional[int] = Field(None, ge=1, le=5)
    assignee_id: Optional[uuid.UUID] = None

    @field_validator("end_date")
    @classmethod
    def check_dates(cls, value, info):
        return end_not_before_start(value, info)


class TaskUpdate(UpdateModel):
    title: Optional[NonEmptyStr] = None
    status: Optional[TaskStatus] = None
    notes: OptionalText = None
    start_date: DateTimeField = None
    end_date: DateTimeField = None
    priority: Optional[int] = Field(None, ge=1, le=5)
    assignee_id: Optional[uuid.UUID] = None

    @field_validator("end_date")
    @classmethod
    def check_dates(cls, value, info):
        return end_not_before_start(value, info)


class TaskListQuery(InputModel):
    project_id: Optional[uuid.UUID] = None


class AssigneeSummary(OutputModel):
    id: uuid.UUID
    name: Optional[str]
    email: str


class TaskRead(OutputModel):
    id: uuid.UUID
    title: str
    status: TaskStatus
    notes: Optional[str]
    priority: Optional[int]
    assignee_id: Optional[uuid.UUID]
    assignee: Optional[AssigneeSummary] = None
    project_id: uuid.UUID
    company_id: uuid.UUID
    start_date: Optional[UtcDateTime]
    end_date: Optional[UtcDateTime]
    created_at: UtcDateTime
    updated_at: UtcDateTime
