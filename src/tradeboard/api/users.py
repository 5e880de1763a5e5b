"""User management API routes (ADMIN only, enforced in api/__init__.py)."""

import uuid

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from tradeboard.auth.dependencies import CurrentIdentity, require_admin
from tradeboard.db.engine import get_db
from tradeboard.schemas.user import UserCreate, UserRead, UserUpdate
from tradeboard.services.user_service import UserService

router = APIRouter(prefix="/users")


def _svc(request: Request, db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db, bcrypt_rounds=request.app.state.settings.bcrypt_rounds)


@router.post("", response_model=UserRead, status_code=201)
async def create_user(
    body: UserCreate,
    identity: CurrentIdentity = Depends(require_admin),
    svc: UserService = Depends(_svc),
):
    """Create a user in the admin's company (role defaults to USER)."""
    return await svc.create_user(identity, **body.model_dump())


@router.get("", response_model=list[UserRead])
async def list_users(
    identity: CurrentIdentity = Depends(require_admin),
    svc: UserService = Depends(_svc),
):
    return await svc.list_users(identity)


@router.get("/{user_id}", response_model=UserRead)
async def get_user(
    user_id: uuid.UUID,
    identity: CurrentIdentity = Depends(require_admin),
    svc: UserService = Depends(_svc),
):
    return await svc.get_user(identity, user_id)


@router.put("/{user_id}", response_model=UserRead)
async def update_user(
    user_id: uuid.UUID,
    body: UserUpdate,
    identity: CurrentIdentity = Depends(require_admin),
    svc: UserService = Depends(_svc),
):
    """Change a user's name, password or role."""
    return await svc.update_user(identity, user_id, body.changes())


@router.delete("/{user_id}", status_code=204)
async def delete_user(
    user_id: uuid.UUID,
    identity: CurrentIdentity = Depends(require_admin),
    svc: UserService = Depends(_svc),
):
    """Delete a user. Admins cannot delete themselves."""
    await svc.delete_user(identity, user_id)
    return Response(status_code=204)
