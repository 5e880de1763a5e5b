"""Project service — role-scoped listing and author-guarded changes.

Learn: Projects are the one resource with an owner inside the tenant.
- List: admins see the whole company, users see what they authored.
- Read one: anyone in the company.
- Update/delete: company member AND (admin OR author).
Tenant mismatch is NotFound, ownership mismatch is Forbidden; both
decisions are made by auth.policy.authorize().
"""

import uuid
from datetime import datetime

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tradeboard.auth.dependencies import CurrentIdentity
from tradeboard.auth.policy import (
    Action,
    authorize,
    project_scope,
    require_same_company,
)
from tradeboard.db.models import Client, Project
from tradeboard.errors import InvalidReference, ValidationFailed
from tradeboard.services.persistence import commit
from tradeboard.validation import NO_UPDATE_DATA

logger = structlog.get_logger()

_PROTECTED = {"id", "author_id", "company_id", "created_at", "updated_at"}
_REQUIRED = {"name", "status"}


class ProjectService:
    """Business logic for projects."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _load(self, project_id: uuid.UUID) -> Project | None:
        """Fetch a project with its client summary, bypassing stale identity-map state."""
        result = await self.db.execute(
            select(Project)
            .where(Project.id == project_id)
            .options(selectinload(Project.client))
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def _check_client(self, identity: CurrentIdentity, client_id: uuid.UUID | None) -> None:
        if client_id is None:
            return
        client = await self.db.get(Client, client_id)
        require_same_company(identity, client, "Client")

    # ─── Create ──────────────────────────────────────────

    async def create_project(
        self,
        identity: CurrentIdentity,
        name: str,
        status: str,
        client_id: uuid.UUID | None = None,
        address: str | None = None,
        notes: str | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> Project:
        """Create a project authored by the caller, in the caller's company."""
        await self._check_client(identity, client_id)

        project = Project(
            name=name,
            status=status,
            client_id=client_id,
            address=address,
            notes=notes,
            start_date=start_date,
            end_date=end_date,
            author_id=identity.user_id,
            company_id=identity.company_id,
        )
        self.db.add(project)
        await commit(
            self.db,
            foreign_key=InvalidReference("Client not found or does not belong to this company."),
            operation="project.create",
            company_id=str(identity.company_id),
        )

        logger.info(
            "project.created",
            project_id=str(project.id),
            author_id=str(identity.user_id),
            company_id=str(identity.company_id),
        )
        return await self._load(project.id)

    # ─── Read ────────────────────────────────────────────

    async def list_projects(self, identity: CurrentIdentity) -> list[Project]:
        result = await self.db.execute(
            select(Project)
            .where(project_scope(identity))
            .options(selectinload(Project.client))
            .order_by(Project.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_project(self, identity: CurrentIdentity, project_id: uuid.UUID) -> Project:
        project = await self._load(project_id)
        return authorize(identity, Action.READ, project, "Project")

    # ─── Update / delete ─────────────────────────────────

    async def update_project(
        self, identity: CurrentIdentity, project_id: uuid.UUID, changes: dict
    ) -> Project:
        changes = {
            k: v for k, v in changes.items()
            if k not in _PROTECTED and not (k in _REQUIRED and v is None)
        }
        if not changes:
            raise ValidationFailed({"body": [NO_UPDATE_DATA]})

        project = await self.db.get(Project, project_id)
        authorize(identity, Action.UPDATE, project, "Project")
        if "client_id" in changes:
            await self._check_client(identity, changes["client_id"])

        for field, value in changes.items():
            setattr(project, field, value)
        await commit(
            self.db,
            foreign_key=InvalidReference("Client not found or does not belong to this company."),
            operation="project.update",
            project_id=str(project_id),
        )

        logger.info(
            "project.updated",
            project_id=str(project_id),
            user_id=str(identity.user_id),
            fields=sorted(changes),
        )
        return await self._load(project_id)

    async def delete_project(self, identity: CurrentIdentity, project_id: uuid.UUID) -> None:
        """Delete a project; its tasks go with it (ON DELETE CASCADE)."""
        project = await self.db.get(Project, project_id)
        authorize(identity, Action.DELETE, project, "Project")

        await self.db.delete(project)
        await commit(self.db, operation="project.delete", project_id=str(project_id))
        logger.info(
            "project.deleted",
            project_id=str(project_id),
            user_id=str(identity.user_id),
            company_id=str(identity.company_id),
        )
