"""Client service — CRUD for a company's clients.

Every read and write goes through the tenant check in auth.policy: a
client of another company answers NotFound exactly like a missing one.
"""

import uuid

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tradeboard.auth.dependencies import CurrentIdentity
from tradeboard.auth.policy import Action, authorize
from tradeboard.db.models import Client
from tradeboard.errors import StillReferenced, ValidationFailed
from tradeboard.services.persistence import commit
from tradeboard.validation import NO_UPDATE_DATA

logger = structlog.get_logger()

# Fields a caller may never set, even if a schema let them through
_PROTECTED = {"id", "company_id", "created_at", "updated_at"}
_REQUIRED = {"name"}


class ClientService:
    """Business logic for clients."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_client(
        self,
        identity: CurrentIdentity,
        name: str,
        email: str | None = None,
        phone: str | None = None,
        address: str | None = None,
    ) -> Client:
        client = Client(
            name=name,
            email=email,
            phone=phone,
            address=address,
            company_id=identity.company_id,
        )
        self.db.add(client)
        await commit(self.db, operation="client.create", company_id=str(identity.company_id))

        logger.info(
            "client.created",
            client_id=str(client.id),
            company_id=str(identity.company_id),
        )
        return client

    async def list_clients(self, identity: CurrentIdentity) -> list[Client]:
        result = await self.db.execute(
            select(Client)
            .where(Client.company_id == identity.company_id)
            .order_by(Client.name)
        )
        return list(result.scalars().all())

    async def get_client(self, identity: CurrentIdentity, client_id: uuid.UUID) -> Client:
        client = await self.db.get(Client, client_id)
        return authorize(identity, Action.READ, client, "Client")

    async def update_client(
        self, identity: CurrentIdentity, client_id: uuid.UUID, changes: dict
    ) -> Client:
        changes = {
            k: v for k, v in changes.items()
            if k not in _PROTECTED and not (k in _REQUIRED and v is None)
        }
        if not changes:
            raise ValidationFailed({"body": [NO_UPDATE_DATA]})

        client = await self.db.get(Client, client_id)
        authorize(identity, Action.UPDATE, client, "Client")

        for field, value in changes.items():
            setattr(client, field, value)
        await commit(self.db, operation="client.update", client_id=str(client_id))

        logger.info(
            "client.updated",
            client_id=str(client_id),
            company_id=str(identity.company_id),
            fields=sorted(changes),
        )
        return client

    async def delete_client(self, identity: CurrentIdentity, client_id: uuid.UUID) -> None:
        client = await self.db.get(Client, client_id)
        authorize(identity, Action.DELETE, client, "Client")

        await self.db.delete(client)
        await commit(
            self.db,
            foreign_key=StillReferenced(
                "Cannot delete client because they are linked to existing projects."
            ),
            operation="client.delete",
            client_id=str(client_id),
        )
        logger.info(
            "client.deleted",
            client_id=str(client_id),
            company_id=str(identity.company_id),
        )
