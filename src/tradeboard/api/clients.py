"""Client API routes.

Learn: Routes translate HTTP to service calls. Body and path are
validated by the schemas before the handler runs; the service raises
typed errors (NotFound, StillReferenced, ...) that the app-level handlers
render, so there is no try/except here.
"""

import uuid

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from tradeboard.auth.dependencies import CurrentIdentity, get_current_user
from tradeboard.db.engine import get_db
from tradeboard.schemas.client import ClientCreate, ClientRead, ClientUpdate
from tradeboard.services.client_service import ClientService

router = APIRouter(prefix="/clients")


def _svc(db: AsyncSession = Depends(get_db)) -> ClientService:
    return ClientService(db)


@router.post("", response_model=ClientRead, status_code=201)
async def create_client(
    body: ClientCreate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: ClientService = Depends(_svc),
):
    return await svc.create_client(
        identity,
        name=body.name,
        email=body.email,
        phone=body.phone,
        address=body.address,
    )


@router.get("", response_model=list[ClientRead])
async def list_clients(
    identity: CurrentIdentity = Depends(get_current_user),
    svc: ClientService = Depends(_svc),
):
    """All clients of the caller's company, by name."""
    return await svc.list_clients(identity)


@router.get("/{client_id}", response_model=ClientRead)
async def get_client(
    client_id: uuid.UUID,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: ClientService = Depends(_svc),
):
    return await svc.get_client(identity, client_id)


@router.put("/{client_id}", response_model=ClientRead)
async def update_client(
    client_id: uuid.UUID,
    body: ClientUpdate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: ClientService = Depends(_svc),
):
    """Partially update a client; only the fields sent are changed."""
    return await svc.update_client(identity, client_id, body.changes())


@router.delete("/{client_id}", status_code=204)
async def delete_client(
    client_id: uuid.UUID,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: ClientService = Depends(_svc),
):
    await svc.delete_client(identity, client_id)
    return Response(status_code=204)
