"""Auth API — login, optional self-registration, current identity.

- POST /auth/login    → email/password → bearer token
- POST /auth/register → create a USER account (when enabled)
- GET  /auth/me       → who the token says you are
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from tradeboard.auth.dependencies import CurrentIdentity, get_current_user
from tradeboard.db.engine import get_db
from tradeboard.schemas.auth import LoginRequest, MeRead, RegisterRequest, TokenResponse
from tradeboard.schemas.user import UserRead
from tradeboard.services.auth_service import AuthService

router = APIRouter(prefix="/auth")


def _svc(request: Request, db: AsyncSession = Depends(get_db)) -> AuthService:
    return AuthService(db, request.app.state.settings)


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, svc: AuthService = Depends(_svc)):
    """Login with email and password → JWT access token."""
    token = await svc.login(body.email, body.password)
    return TokenResponse(access_token=token)


@router.post("/register", response_model=UserRead, status_code=201)
async def register(body: RegisterRequest, svc: AuthService = Depends(_svc)):
    """Create a USER account in an existing company."""
    return await svc.register(
        email=body.email,
        password=body.password,
        company_id=body.company_id,
        name=body.name,
    )


@router.get("/me", response_model=MeRead)
async def get_me(
    identity: CurrentIdentity = Depends(get_current_user),
    svc: AuthService = Depends(_svc),
):
    """Get the current authenticated user's claims and name."""
    user = await svc.get_user(identity.user_id)
    return MeRead(
        user_id=identity.user_id,
        email=identity.email,
        name=user.name if user else None,
        role=identity.role,
        company_id=identity.company_id,
    )
