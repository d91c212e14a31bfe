"""Client Service — client CRUD, image sync and desk document upload.

Invariants:
    - Duplicate email on create is a 409 (DuplicateEmailError from the repository)
    - Image sync after create is best-effort: its failure only changes the message
    - Desk uploads land in the client bucket under {document_type}_{epoch_ms}_{filename}
"""

import logging
from datetime import datetime, timezone
from uuid import UUID

from fleetdesk.core.errors import ResourceNotFoundError
from fleetdesk.core.repository_protocols import (
    ClientRepository, ObjectStorage, UploadRepository,
)
from fleetdesk.core.upload_documents import build_document_key
from fleetdesk.infrastructure.side_effects import run_best_effort

logger = logging.getLogger(__name__)


class ClientService:
    """Client records and their uploaded images."""

    def __init__(self, clients: ClientRepository, uploads: UploadRepository | None = None):
        self.clients = clients
        self.uploads = uploads

    async def list_clients(self) -> dict:
        return {"success": True, "clients": await self.clients.list_all()}

    async def create_client(self, fields: dict) -> dict:
        client = await self.clients.create(fields)
        client_id = UUID(client["id"])
        logger.info("Client created", extra={"entity_id": client_id})

        synced = await run_best_effort(
            "sync_client_images", self.clients.sync_images, client_id,
        )
        if synced:
            client = await self.clients.get(client_id) or client
            message = "Client created successfully with synced images"
        else:
            message = "Client created successfully (image sync failed)"
        return {"success": True, "client": client, "message": message}

    async def sync_images(self, client_id: UUID) -> dict:
        client = await self.clients.sync_images(client_id)
        if client is None:
            raise ResourceNotFoundError("Client", str(client_id))
        return {"success": True, "client": client, "message": "Images synced successfully"}

    async def list_images(self, client_id: UUID) -> dict:
        return {"success": True, "images": await self.clients.list_images(client_id)}

    async def list_uploads(self, client_id: UUID) -> dict:
        sessions = await self.uploads.list_sessions(client_id)
        return {"success": True, "uploads": [s.to_dict() for s in sessions]}


async def upload_client_document(
    storage: ObjectStorage,
    bucket: str,
    document_type: str,
    filename: str | None,
    content_type: str | None,
    data: bytes,
    now: datetime | None = None,
) -> dict:
    """Store a document picked in the client form before the client exists."""
    now = now or datetime.now(timezone.utc)
    key = build_document_key(document_type, filename, now)
    await storage.upload(bucket, key, data, content_type)
    logger.info("Desk document stored", extra={"document_type": document_type})
    return {"success": True, "url": storage.public_url(bucket, key), "fileName": key}
