"""Auth service — login and self-registration.

Learn: Login answers the same "Invalid email or password." whether the
email is unknown or the password is wrong, so the endpoint cannot be
used to discover which emails have accounts. The two cases are still
logged apart.
"""

import uuid
from datetime import timedelta

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tradeboard.auth.jwt import build_claims, issue_token
from tradeboard.auth.password import hash_password, verify_password
from tradeboard.config import Settings
from tradeboard.db.models import Company, Role, User
from tradeboard.errors import Conflict, Forbidden, InvalidCredentials, InvalidReference
from tradeboard.services.persistence import commit

logger = structlog.get_logger()

EMAIL_IN_USE = "Email already in use."


class AuthService:
    """Credential checks and token issuing."""

    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings

    async def login(self, email: str, password: str) -> str:
        """Email/password → signed access token."""
        result = await self.db.execute(select(User).where(User.email == email))
        user = result.scalars().first()

        if not user:
            logger.warning("auth.login_failed", reason="unknown_email", email=email)
            raise InvalidCredentials()
        if not verify_password(password, user.password_hash):
            logger.warning("auth.login_failed", reason="bad_password", email=email)
            raise InvalidCredentials()

        logger.info(
            "auth.login",
            user_id=str(user.id),
            role=user.role.value,
            company_id=str(user.company_id),
        )
        return issue_token(
            build_claims(user),
            ttl=timedelta(minutes=self.settings.access_token_expire_minutes),
            secret=self.settings.jwt_secret,
            algorithm=self.settings.jwt_algorithm,
        )

    async def register(
        self,
        email: str,
        password: str,
        company_id: uuid.UUID,
        name: str | None = None,
    ) -> User:
        """Create a USER account in an existing company.

        Only available when TRADEBOARD_ALLOW_REGISTRATION is on; the role is
        always USER, admins are made by other admins or the CLI.
        """
        if not self.settings.allow_registration:
            raise Forbidden("Registration is disabled.")

        company = await self.db.get(Company, company_id)
        if company is None:
            raise InvalidReference("Company not found.")

        existing = await self.db.execute(select(User.id).where(User.email == email))
        if existing.first():
            raise Conflict(EMAIL_IN_USE)

        user = User(
            email=email,
            name=name,
            password_hash=hash_password(password, rounds=self.settings.bcrypt_rounds),
            role=Role.USER,
            company_id=company_id,
        )
        self.db.add(user)
        await commit(self.db, conflict=EMAIL_IN_USE, operation="register")

        logger.info("user.registered", user_id=str(user.id), company_id=str(company_id))
        return user

    async def get_user(self, user_id: uuid.UUID) -> User | None:
        return await self.db.get(User, user_id)
