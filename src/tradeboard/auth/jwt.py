"""JWT token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication. There is
no server-side revocation list; logging out means the client throws the
token away. The claim names below are read by the frontend to render
role-based UI, so renaming one is a breaking change.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from tradeboard.config import settings
from tradeboard.errors import TokenExpired, TokenInvalid

CLAIM_KEYS = ("userId", "email", "role", "companyId")


def build_claims(user) -> dict:
    """Identity claims for a User row."""
    return {
        "userId": str(user.id),
        "email": user.email,
        "role": user.role.value,
        "companyId": str(user.company_id),
    }


def issue_token(
    claims: dict,
    ttl: Optional[timedelta] = None,
    secret: Optional[str] = None,
    algorithm: Optional[str] = None,
) -> str:
    """Sign `claims` into an access token that expires after `ttl`."""
    now = datetime.now(timezone.utc)
    if ttl is None:
        ttl = timedelta(minutes=settings.access_token_expire_minutes)
    payload = {
        **claims,
        "iat": now,
        "exp": now + ttl,
    }
    return jwt.encode(
        payload,
        secret or settings.jwt_secret,
        algorithm=algorithm or settings.jwt_algorithm,
    )


def verify_token(
    token: str,
    secret: Optional[str] = None,
    algorithm: Optional[str] = None,
) -> dict:
    """Verify and decode a JWT token.

    Returns the payload dict on success.
    Raises TokenExpired once `exp` has passed, TokenInvalid for anything
    else (bad signature, malformed token, missing claims).
    """
    try:
        payload = jwt.decode(
            token,
            secret or settings.jwt_secret,
            algorithms=[algorithm or settings.jwt_algorithm],
            options={"require": ["exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenExpired()
    except jwt.InvalidTokenError:
        raise TokenInvalid()

    missing = [k for k in CLAIM_KEYS if not isinstance(payload.get(k), str)]
    if missing:
        raise TokenInvalid("Authentication failed: Invalid token claims.")
    return payload
