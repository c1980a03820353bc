from __future__ import annotations

import logging
from typing import List, Optional

from app.schemas.client import Client, ClientCreate, ClientListResponse, ClientUpdate
from app.services.exceptions import ConflictError
from app.services.storage import InvoiceStorage

logger = logging.getLogger(__name__)


class ClientService:
    def __init__(self, storage: InvoiceStorage) -> None:
        self._storage = storage

    async def create(self, request: ClientCreate) -> Client:
        logger.info("Creating client %s", request.email)
        await self._ensure_email_available(request.email)
        return await self._storage.create_client(request)

    async def get(self, client_id: str) -> Optional[Client]:
        logger.debug("Fetching client %s", client_id)
        return await self._storage.get_client(client_id)

    async def list(self) -> ClientListResponse:
        clients: List[Client] = await self._storage.list_clients()
        return ClientListResponse(total=len(clients), items=clients)

    async def update(self, client_id: str, request: ClientUpdate) -> Optional[Client]:
        logger.info("Updating client %s", client_id)
        if request.email is not None:
            await self._ensure_email_available(request.email, exclude_id=client_id)
        return await self._storage.update_client(client_id, request)

    async def delete(self, client_id: str) -> bool:
        logger.info("Deleting client %s", client_id)
        return await self._storage.delete_client(client_id)

    async def _ensure_email_available(
        self, email: str, *, exclude_id: str | None = None
    ) -> None:
        existing = await self._storage.get_client_by_email(email)
        if existing is not None and existing.id != exclude_id:
            raise ConflictError(f"A client with email {email} already exists", field="email")
