"""User service — admin management of a company's accounts.

Learn: Only admins reach this service (the /users router requires the
ADMIN role). Users are always created in the admin's own company; a
companyId in the request that points anywhere else is rejected as an
invalid reference rather than silently ignored.
"""

import uuid

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tradeboard.auth.dependencies import CurrentIdentity
from tradeboard.auth.password import hash_password
from tradeboard.auth.policy import (
    Action,
    authorize,
    forbid_self_deletion,
    require_own_company,
)
from tradeboard.db.models import Role, User
from tradeboard.errors import Conflict, StillReferenced, ValidationFailed
from tradeboard.services.persistence import commit
from tradeboard.validation import NO_UPDATE_DATA

logger = structlog.get_logger()

EMAIL_IN_USE = "Email already in use."

# Fields the update endpoint may touch
_UPDATABLE = {"name", "password", "role"}


class UserService:
    """Business logic for user management."""

    def __init__(self, db: AsyncSession, bcrypt_rounds: int | None = None):
        self.db = db
        self.bcrypt_rounds = bcrypt_rounds

    async def create_user(
        self,
        identity: CurrentIdentity,
        email: str,
        password: str,
        name: str | None = None,
        role: Role = Role.USER,
        company_id: uuid.UUID | None = None,
    ) -> User:
        if company_id is not None:
            require_own_company(identity, company_id)

        existing = await self.db.execute(select(User.id).where(User.email == email))
        if existing.first():
            raise Conflict(EMAIL_IN_USE)

        user = User(
            email=email,
            name=name,
            password_hash=hash_password(password, rounds=self.bcrypt_rounds),
            role=role,
            company_id=identity.company_id,
        )
        self.db.add(user)
        await commit(self.db, conflict=EMAIL_IN_USE, operation="user.create")

        logger.info(
            "user.created",
            user_id=str(user.id),
            role=role.value,
            company_id=str(identity.company_id),
            created_by=str(identity.user_id),
        )
        return user

    async def list_users(self, identity: CurrentIdentity) -> list[User]:
        result = await self.db.execute(
            select(User)
            .where(User.company_id == identity.company_id)
            .order_by(User.created_at.asc())
        )
        return list(result.scalars().all())

    async def get_user(self, identity: CurrentIdentity, user_id: uuid.UUID) -> User:
        user = await self.db.get(User, user_id)
        return authorize(identity, Action.READ, user, "User")

    async def update_user(
        self, identity: CurrentIdentity, user_id: uuid.UUID, changes: dict
    ) -> User:
        """Change name, password or role. A null password or role is ignored."""
        changes = {k: v for k, v in changes.items() if k in _UPDATABLE}
        for key in ("password", "role"):
            if key in changes and changes[key] is None:
                del changes[key]
        if not changes:
            raise ValidationFailed({"body": [NO_UPDATE_DATA]})

        user = await self.db.get(User, user_id)
        authorize(identity, Action.UPDATE, user, "User")

        fields = sorted(changes)
        if "password" in changes:
            user.password_hash = hash_password(
                changes.pop("password"), rounds=self.bcrypt_rounds
            )
        for field, value in changes.items():
            setattr(user, field, value)
        await commit(self.db, operation="user.update", user_id=str(user_id))

        logger.info(
            "user.updated",
            user_id=str(user_id),
            updated_by=str(identity.user_id),
            fields=fields,
        )
        return user

    async def delete_user(self, identity: CurrentIdentity, user_id: uuid.UUID) -> None:
        """Delete a user of the admin's company.

        Tasks assigned to them become unassigned; projects they authored
        block the delete.
        """
        forbid_self_deletion(identity, user_id)

        user = await self.db.get(User, user_id)
        authorize(identity, Action.DELETE, user, "User")

        await self.db.delete(user)
        await commit(
            self.db,
            foreign_key=StillReferenced(
                "Cannot delete user because they authored existing projects."
            ),
            operation="user.delete",
            user_id=str(user_id),
        )
        logger.info(
            "user.deleted",
            user_id=str(user_id),
            deleted_by=str(identity.user_id),
            company_id=str(identity.company_id),
        )
