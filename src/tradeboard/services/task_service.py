"""Task service — tasks inside a company's projects.

Learn: A task inherits its tenant from its project. Creating one checks
that the project is in the caller's company (NotFound otherwise, the
caller cannot see other tenants' projects) and that the assignee, if
any, is too (InvalidReference: the request points at a bad user).

Listing has two shapes:
- ?projectId=X → the project's tasks, oldest first
- no filter    → every dated task of the company, for the schedule view
"""

import uuid
from datetime import datetime

import structlog
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tradeboard.auth.dependencies import CurrentIdentity
from tradeboard.auth.policy import Action, authorize, require_same_company
from tradeboard.db.models import Project, Task, TaskStatus, User
from tradeboard.errors import InvalidReference
from tradeboard.services.persistence import commit

logger = structlog.get_logger()

_PROTECTED = {"id", "project_id", "company_id", "created_at", "updated_at"}

# Columns that cannot be cleared; an explicit null leaves them as they are
_REQUIRED = {"title", "status"}


class TaskService:
    """Business logic for task CRUD."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _load(self, task_id: uuid.UUID) -> Task | None:
        result = await self.db.execute(
            select(Task)
            .where(Task.id == task_id)
            .options(selectinload(Task.assignee))
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def _check_assignee(
        self, identity: CurrentIdentity, assignee_id: uuid.UUID | None
    ) -> None:
        if assignee_id is None:
            return
        assignee = await self.db.get(User, assignee_id)
        try:
            require_same_company(identity, assignee, "Assignee user")
        except InvalidReference:
            logger.warning(
                "task.invalid_assignee",
                assignee_id=str(assignee_id),
                company_id=str(identity.company_id),
            )
            raise

    # ─── Create ──────────────────────────────────────────

    async def create_task(
        self,
        identity: CurrentIdentity,
        title: str,
        project_id: uuid.UUID,
        status: TaskStatus | None = None,
        notes: str | None = None,
        priority: int | None = None,
        assignee_id: uuid.UUID | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> Task:
        """Create a task in one of the caller's company projects."""
        project = await self.db.get(Project, project_id)
        authorize(identity, Action.READ, project, "Project")
        await self._check_assignee(identity, assignee_id)

        task = Task(
            title=title,
            project_id=project_id,
            company_id=project.company_id,
            status=status or TaskStatus.TODO,
            notes=notes,
            priority=priority,
            assignee_id=assignee_id,
            start_date=start_date,
            end_date=end_date,
        )
        self.db.add(task)
        await commit(
            self.db,
            foreign_key=InvalidReference("Referenced project or assignee no longer exists."),
            operation="task.create",
            project_id=str(project_id),
        )

        logger.info(
            "task.created",
            task_id=str(task.id),
            project_id=str(project_id),
            company_id=str(identity.company_id),
        )
        return await self._load(task.id)

    # ─── Read ────────────────────────────────────────────

    async def list_project_tasks(
        self, identity: CurrentIdentity, project_id: uuid.UUID
    ) -> list[Task]:
        project = await self.db.get(Project, project_id)
        authorize(identity, Action.READ, project, "Project")

        result = await self.db.execute(
            select(Task)
            .where(Task.project_id == project_id)
            .options(selectinload(Task.assignee))
            .order_by(Task.created_at.asc())
        )
        return list(result.scalars().all())

    async def list_scheduled_tasks(self, identity: CurrentIdentity) -> list[Task]:
        """Every task of the company with a start or end date."""
        result = await self.db.execute(
            select(Task)
            .where(
                Task.company_id == identity.company_id,
                or_(Task.start_date.is_not(None), Task.end_date.is_not(None)),
            )
            .options(selectinload(Task.assignee))
            .order_by(Task.start_date.asc(), Task.created_at.asc())
        )
        return list(result.scalars().all())

    async def get_task(self, identity: CurrentIdentity, task_id: uuid.UUID) -> Task:
        task = await self._load(task_id)
        return authorize(identity, Action.READ, task, "Task")

    # ─── Update / delete ─────────────────────────────────

    async def update_task(
        self, identity: CurrentIdentity, task_id: uuid.UUID, changes: dict
    ) -> Task:
        """Apply a partial update. An empty diff returns the task unchanged."""
        task = await self._load(task_id)
        authorize(identity, Action.UPDATE, task, "Task")

        changes = {
            k: v for k, v in changes.items()
            if k not in _PROTECTED and not (k in _REQUIRED and v is None)
        }
        if not changes:
            return task

        if "assignee_id" in changes:
            await self._check_assignee(identity, changes["assignee_id"])

        for field, value in changes.items():
            setattr(task, field, value)
        await commit(
            self.db,
            foreign_key=InvalidReference("Assignee user no longer exists."),
            operation="task.update",
            task_id=str(task_id),
        )

        logger.info(
            "task.updated",
            task_id=str(task_id),
            company_id=str(identity.company_id),
            fields=sorted(changes),
        )
        return await self._load(task_id)

    async def delete_task(self, identity: CurrentIdentity, task_id: uuid.UUID) -> None:
        task = await self.db.get(Task, task_id)
        authorize(identity, Action.DELETE, task, "Task")

        await self.db.delete(task)
        await commit(self.db, operation="task.delete", task_id=str(task_id))
        logger.info(
            "task.deleted",
            task_id=str(task_id),
            company_id=str(identity.company_id),
        )
