"""Task API routes.

Key patterns:
- GET /tasks?projectId=X for a project's tasks, GET /tasks alone for the
  company schedule (every task with a date)
- The query string is validated strictly: unknown parameters are a 400
- PUT is a partial update; projectId cannot change
"""

import uuid

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from tradeboard.auth.dependencies import CurrentIdentity, get_current_user
from tradeboard.db.engine import get_db
from tradeboard.schemas.task import TaskCreate, TaskListQuery, TaskRead, TaskUpdate
from tradeboard.services.task_service import TaskService
from tradeboard.validation import query_model

router = APIRouter(prefix="/tasks")


def _svc(db: AsyncSession = Depends(get_db)) -> TaskService:
    return TaskService(db)


@router.post("", response_model=TaskRead, status_code=201)
async def create_task(
    body: TaskCreate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: TaskService = Depends(_svc),
):
    """Create a task (status defaults to TODO)."""
    return await svc.create_task(identity, **body.model_dump())


@router.get("", response_model=list[TaskRead])
async def list_tasks(
    query: TaskListQuery = Depends(query_model(TaskListQuery)),
    identity: CurrentIdentity = Depends(get_current_user),
    svc: TaskService = Depends(_svc),
):
    if query.project_id is not None:
        return await svc.list_project_tasks(identity, query.project_id)
    return await svc.list_scheduled_tasks(identity)


@router.get("/{task_id}", response_model=TaskRead)
async def get_task(
    task_id: uuid.UUID,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: TaskService = Depends(_svc),
):
    return await svc.get_task(identity, task_id)


@router.put("/{task_id}", response_model=TaskRead)
async def update_task(
    task_id: uuid.UUID,
    body: TaskUpdate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: TaskService = Depends(_svc),
):
    return await svc.update_task(identity, task_id, body.changes())


@router.delete("/{task_id}", status_code=204)
async def delete_task(
    task_id: uuid.UUID,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: TaskService = Depends(_svc),
):
    await svc.delete_task(identity, task_id)
    return Response(status_code=204)
