"""Client Routes — client list/create, image sync, desk document upload, upload history.

Invariants:
    - Bodies are validated by Pydantic before reaching the handler (400 on failure)
    - Duplicate email → 409; image sync after create never fails the create
    - Routes delegate to ClientService; no SQL here
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from fleetdesk.api.dependencies import (
    get_client_repository, get_client_uploads, get_object_storage_dep,
)
from fleetdesk.config import Settings, get_settings
from fleetdesk.core.errors import InvalidRequestError
from fleetdesk.core.repository_protocols import ObjectStorage
from fleetdesk.schemas.client import ClientCreate, ClientIdBody
from fleetdesk.services.clients import ClientService, upload_client_document

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["clients"])


@router.get("/clients")
async def list_clients(clients=Depends(get_client_repository)):
    return await ClientService(clients).list_clients()


@router.post("/clients")
async def create_client(body: ClientCreate, clients=Depends(get_client_repository)):
    """Create a client from the desk form, then pull in any QR-uploaded images."""
    return await ClientService(clients).create_client(body.to_fields())


@router.post("/clients/sync-images")
async def sync_client_images(body: ClientIdBody, clients=Depends(get_client_repository)):
    return await ClientService(clients).sync_images(body.client_id)


@router.get("/clients/sync-images")
async def list_client_images(
    client_id: UUID = Query(alias="clientId"),
    clients=Depends(get_client_repository),
):
    return await ClientService(clients).list_images(client_id)


@router.get("/mobile-uploads")
async def list_mobile_uploads(
    client_id: UUID = Query(alias="clientId"),
    clients=Depends(get_client_repository),
    uploads=Depends(get_client_uploads),
):
    return await ClientService(clients, uploads).list_uploads(client_id)


@router.post("/document-upload")
async def upload_document(
    file: UploadFile | None = File(None),
    document_type: str | None = Form(None, alias="documentType"),
    storage: ObjectStorage = Depends(get_object_storage_dep),
    settings: Settings = Depends(get_settings),
):
    """Store a client document picked in the form; returns its public URL."""
    if file is None or not document_type:
        raise InvalidRequestError("File and document type are required")
    data = await file.read()
    return await upload_client_document(
        storage, settings.client_documents_bucket,
        document_type, file.filename, file.content_type, data,
    )
