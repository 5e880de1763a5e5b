"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers (or on whole
routers) to extract and validate the current identity from the request.

The gate is: Authorization header → "Bearer <token>" → verify signature
and expiry → CurrentIdentity. Nothing else runs before it. Missing,
expired and invalid tokens all answer 401 but are logged separately.
"""

import uuid
from dataclasses import dataclass
from typing import Optional

import structlog
from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from tradeboard.auth.jwt import verify_token
from tradeboard.auth.policy import is_admin
from tradeboard.db.engine import get_db
from tradeboard.db.models import Role, User
from tradeboard.errors import (
    Forbidden,
    TokenExpired,
    TokenInvalid,
    TokenMissing,
)

logger = structlog.get_logger()


@dataclass(frozen=True)
class CurrentIdentity:
    """The authenticated caller, decoded from token claims.

    All downstream code uses this to scope queries by company_id and to
    make role/ownership decisions.
    """

    user_id: uuid.UUID
    email: str
    role: Role
    company_id: uuid.UUID

    @classmethod
    def from_claims(cls, claims: dict) -> "CurrentIdentity":
        try:
            return cls(
                user_id=uuid.UUID(claims["userId"]),
                email=claims["email"],
                role=Role(claims["role"]),
                company_id=uuid.UUID(claims["companyId"]),
            )
        except (KeyError, ValueError, TypeError):
            raise TokenInvalid("Authentication failed: Invalid token claims.")


def _bearer_token(authorization: Optional[str]) -> str:
    scheme, _, token = (authorization or "").partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        logger.warning("auth.token_missing")
        raise TokenMissing()
    return token


async def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
) -> CurrentIdentity:
    """Extract current identity (required — 401 if no valid token)."""
    token = _bearer_token(authorization)
    app_settings = request.app.state.settings

    try:
        claims = verify_token(
            token,
            secret=app_settings.jwt_secret,
            algorithm=app_settings.jwt_algorithm,
        )
    except TokenExpired:
        logger.info("auth.token_expired", path=request.url.path)
        raise
    except TokenInvalid:
        logger.warning("auth.token_invalid", path=request.url.path)
        raise

    identity = CurrentIdentity.from_claims(claims)

    # Stricter mode: a deleted user's token stops working immediately
    if app_settings.auth_verify_user:
        user = await db.get(User, identity.user_id)
        if user is None:
            logger.warning("auth.user_gone", user_id=str(identity.user_id))
            raise TokenInvalid("Authentication failed: User not found.")

    request.state.identity = identity
    return identity


async def require_admin(
    identity: CurrentIdentity = Depends(get_current_user),
) -> CurrentIdentity:
    """Authenticated AND role ADMIN — 403 otherwise."""
    if not is_admin(identity):
        logger.warning("auth.admin_required", user_id=str(identity.user_id))
        raise Forbidden("Admin access required.")
    return identity
