"""Project API routes.

Listing is role-scoped (admins: whole company, users: their own
projects). Update and delete need authorship or the ADMIN role.
"""

import uuid

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from tradeboard.auth.dependencies import CurrentIdentity, get_current_user
from tradeboard.db.engine import get_db
from tradeboard.schemas.project import ProjectCreate, ProjectRead, ProjectUpdate
from tradeboard.services.project_service import ProjectService

router = APIRouter(prefix="/projects")


def _svc(db: AsyncSession = Depends(get_db)) -> ProjectService:
    return ProjectService(db)


@router.get("", response_model=list[ProjectRead])
async def list_projects(
    identity: CurrentIdentity = Depends(get_current_user),
    svc: ProjectService = Depends(_svc),
):
    return await svc.list_projects(identity)


@router.get("/{project_id}", response_model=ProjectRead)
async def get_project(
    project_id: uuid.UUID,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: ProjectService = Depends(_svc),
):
    return await svc.get_project(identity, project_id)


@router.post("", response_model=ProjectRead, status_code=201)
async def create_project(
    body: ProjectCreate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: ProjectService = Depends(_svc),
):
    """Create a project authored by the caller."""
    return await svc.create_project(identity, **body.model_dump())


@router.put("/{project_id}", response_model=ProjectRead)
async def update_project(
    project_id: uuid.UUID,
    body: ProjectUpdate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: ProjectService = Depends(_svc),
):
    return await svc.update_project(identity, project_id, body.changes())


@router.delete("/{project_id}", status_code=204)
async def delete_project(
    project_id: uuid.UUID,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: ProjectService = Depends(_svc),
):
    """Delete a project and its tasks."""
    await svc.delete_project(identity, project_id)
    return Response(status_code=204)
