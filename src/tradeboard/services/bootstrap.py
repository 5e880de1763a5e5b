"""Operator-side setup: companies, first accounts, demo data.

Learn: Companies have no API of their own, and the very first ADMIN of a
company cannot be created through /users (nobody can log in yet). The
CLI calls these functions directly against a session instead. They go
through the same commit() translation as the request path, so a
duplicate email is still a Conflict.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tradeboard.auth.password import hash_password
from tradeboard.db.models import Client, Company, Project, Role, Task, TaskStatus, User
from tradeboard.errors import Conflict, InvalidReference
from tradeboard.services.persistence import commit

logger = structlog.get_logger()

EMAIL_IN_USE = "Email already in use."


async def create_company(db: AsyncSession, name: str) -> Company:
    company = Company(name=name)
    db.add(company)
    await commit(db, operation="company.create")
    logger.info("company.created", company_id=str(company.id), name=name)
    return company


async def create_account(
    db: AsyncSession,
    email: str,
    password: str,
    company_id: uuid.UUID,
    name: str | None = None,
    role: Role = Role.USER,
    bcrypt_rounds: int | None = None,
) -> User:
    """Create a user in any existing company, with any role."""
    if await db.get(Company, company_id) is None:
        raise InvalidReference("Company not found.")

    existing = await db.execute(select(User.id).where(User.email == email))
    if existing.first():
        raise Conflict(EMAIL_IN_USE)

    user = User(
        email=email,
        name=name,
        password_hash=hash_password(password, rounds=bcrypt_rounds),
        role=role,
        company_id=company_id,
    )
    db.add(user)
    await commit(db, conflict=EMAIL_IN_USE, operation="account.create")
    logger.info(
        "user.created",
        user_id=str(user.id),
        role=role.value,
        company_id=str(company_id),
        created_by="cli",
    )
    return user


@dataclass
class DemoData:
    company: Company
    admin: User
    user: User
    projects: list[Project]
    tasks: list[Task]


async def seed_demo(
    db: AsyncSession,
    password: str,
    company_name: str = "Acme Builders",
    email_domain: str = "acme.com",
    bcrypt_rounds: int | None = None,
) -> DemoData:
    """One company with an admin, a user, two clients, two projects and tasks."""
    company = await create_company(db, company_name)
    admin = await create_account(
        db, f"admin@{email_domain}", password, company.id,
        name="Alice Admin", role=Role.ADMIN, bcrypt_rounds=bcrypt_rounds,
    )
    user = await create_account(
        db, f"user@{email_domain}", password, company.id,
        name="Bob Builder", bcrypt_rounds=bcrypt_rounds,
    )

    smith = Client(
        name="Smith Household",
        email=f"smith@{email_domain}",
        phone="555-0101",
        address="12 Elm Street",
        company_id=company.id,
    )
    jones = Client(name="Jones Bakery", phone="555-0199", company_id=company.id)
    db.add_all([smith, jones])
    await commit(db, operation="seed.clients")

    today = datetime.now(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
    kitchen = Project(
        name="Kitchen remodel",
        status="In Progress",
        client_id=smith.id,
        address=smith.address,
        start_date=today,
        end_date=today + timedelta(days=21),
        author_id=admin.id,
        company_id=company.id,
    )
    storefront = Project(
        name="Storefront signage",
        status="Planning",
        client_id=jones.id,
        author_id=user.id,
        company_id=company.id,
    )
    db.add_all([kitchen, storefront])
    await commit(db, operation="seed.projects")

    tasks = [
        Task(
            title="Demolish old cabinets",
            status=TaskStatus.DONE,
            priority=2,
            project_id=kitchen.id,
            company_id=company.id,
            assignee_id=user.id,
            start_date=today,
            end_date=today + timedelta(days=2),
        ),
        Task(
            title="Install plumbing rough-in",
            status=TaskStatus.IN_PROGRESS,
            priority=1,
            project_id=kitchen.id,
            company_id=company.id,
            assignee_id=user.id,
            start_date=today + timedelta(days=3),
        ),
        Task(
            title="Measure facade",
            project_id=storefront.id,
            company_id=company.id,
        ),
    ]
    db.add_all(tasks)
    await commit(db, operation="seed.tasks")

    logger.info("seed.completed", company_id=str(company.id))
    return DemoData(
        company=company,
        admin=admin,
        user=user,
        projects=[kitchen, storefront],
        tasks=tasks,
    )
