"""Upload Link Routes — QR code issuance for client and car upload flows.

Invariants:
    - POST /api/qr/generate creates a placeholder client for unknown ids
    - POST /api/qr/generate-car answers 404 for unknown cars
    - Missing UPLOAD_TOKEN_SECRET → 500 CONFIGURATION_ERROR at call time
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from fleetdesk.api.dependencies import (
    get_car_repository, get_car_uploads, get_client_repository,
    get_client_uploads, get_signer, upload_base_url,
)
from fleetdesk.config import Settings, get_settings
from fleetdesk.core.upload_documents import CAR_FLOW, CLIENT_FLOW
from fleetdesk.schemas.car import CarIdBody
from fleetdesk.schemas.client import ClientIdBody
from fleetdesk.services.upload_links import UploadLinkService

router = APIRouter(prefix="/api/qr", tags=["upload-links"])


@router.post("/generate")
async def generate_client_link(
    body: ClientIdBody,
    clients=Depends(get_client_repository),
    uploads=Depends(get_client_uploads),
    signer=Depends(get_signer),
    base_url: str = Depends(upload_base_url),
    settings: Settings = Depends(get_settings),
):
    service = UploadLinkService(
        CLIENT_FLOW, uploads, clients, signer, settings.upload_token_ttl_seconds,
    )
    return await service.issue(body.client_id, base_url)


@router.get("/generate")
async def list_client_tokens(
    client_id: UUID = Query(alias="clientId"),
    clients=Depends(get_client_repository),
    uploads=Depends(get_client_uploads),
):
    service = UploadLinkService(CLIENT_FLOW, uploads, clients, signer=None)
    return await service.list_tokens(client_id)


@router.post("/generate-car")
async def generate_car_link(
    body: CarIdBody,
    cars=Depends(get_car_repository),
    uploads=Depends(get_car_uploads),
    signer=Depends(get_signer),
    base_url: str = Depends(upload_base_url),
    settings: Settings = Depends(get_settings),
):
    service = UploadLinkService(
        CAR_FLOW, uploads, cars, signer, settings.upload_token_ttl_seconds,
    )
    return await service.issue(body.car_id, base_url)
