"""Mobile Upload Routes — token-authenticated upload, status polling and completion.

Invariants:
    - Client flow under /api/mobile-upload, car flow under /api/mobile-upload-car
    - Credentials of one flow are rejected by the other flow's endpoints (401)
    - Scan-audit rows are written after the response, best-effort
    - A client session reaching its core documents starts background OCR when
      Document AI is configured

Design Decisions:
    - Handlers stay thin: MobileUploadService holds the flow logic, parameterized by
      UploadFlowProfile; the two routers differ only in prefix and dependencies
"""

import logging

from fastapi import (
    APIRouter, BackgroundTasks, Body, Depends, File, Form, Query, UploadFile,
)

from fleetdesk.api.dependencies import (
    get_car_repository, get_car_uploads, get_client_repository,
    get_client_uploads, get_object_storage_dep, get_optional_document_parser,
    get_signer,
)
from fleetdesk.config import Settings, get_settings
from fleetdesk.core.errors import InvalidRequestError
from fleetdesk.core.repository_protocols import ObjectStorage
from fleetdesk.core.upload_documents import CAR_FLOW, CLIENT_FLOW
from fleetdesk.infrastructure.database import SessionScope, get_session_scope
from fleetdesk.infrastructure.side_effects import run_best_effort
from fleetdesk.services.document_processing import process_client_documents
from fleetdesk.services.mobile_upload import MobileUploadService, record_scan
from fleetdesk.services.ocr import OcrService

logger = logging.getLogger(__name__)
client_router = APIRouter(prefix="/api/mobile-upload", tags=["mobile-upload"])
car_router = APIRouter(prefix="/api/mobile-upload-car", tags=["mobile-upload-car"])


def _require_upload_fields(file, token, document_type) -> None:
    if file is None or not token or not document_type:
        raise InvalidRequestError("File, token, and document type are required")


def _require_token(token: str | None) -> str:
    if not token:
        raise InvalidRequestError("Token is required", "token")
    return token


# ─── Client flow ────────────────────────────────────────────────

@client_router.post("")
async def upload_client_document(
    background: BackgroundTasks,
    file: UploadFile | None = File(None),
    token: str | None = Form(None),
    document_type: str | None = Form(None, alias="documentType"),
    clients=Depends(get_client_repository),
    uploads=Depends(get_client_uploads),
    signer=Depends(get_signer),
    storage: ObjectStorage = Depends(get_object_storage_dep),
    parser=Depends(get_optional_document_parser),
    scope: SessionScope = Depends(get_session_scope),
    settings: Settings = Depends(get_settings),
):
    """Phone upload of one ID/license image."""
    _require_upload_fields(file, token, document_type)
    bucket = settings.client_documents_bucket
    service = MobileUploadService(CLIENT_FLOW, uploads, clients, signer, storage, bucket)
    result = await service.ingest(
        token, document_type, file.filename, file.content_type, await file.read(),
    )

    background.add_task(
        run_best_effort, "record_scan", record_scan, scope, CLIENT_FLOW.kind, result.scan,
    )
    if result.became_ready and parser is not None:
        background.add_task(
            process_client_documents,
            scope, storage, OcrService(parser, settings), bucket, result.session.id,
        )
    return result.to_response(document_type)


@client_router.get("/status")
async def client_upload_status(
    token: str | None = Query(None),
    clients=Depends(get_client_repository),
    uploads=Depends(get_client_uploads),
    signer=Depends(get_signer),
):
    service = MobileUploadService(CLIENT_FLOW, uploads, clients, signer)
    return await service.status(_require_token(token))


@client_router.post("/complete")
async def complete_client_upload(
    token: str | None = Body(None, embed=True),
    clients=Depends(get_client_repository),
    uploads=Depends(get_client_uploads),
    signer=Depends(get_signer),
):
    service = MobileUploadService(CLIENT_FLOW, uploads, clients, signer)
    return await service.complete(_require_token(token))


# ─── Car flow ───────────────────────────────────────────────────

@car_router.post("")
async def upload_car_document(
    background: BackgroundTasks,
    file: UploadFile | None = File(None),
    token: str | None = Form(None),
    document_type: str | None = Form(None, alias="documentType"),
    cars=Depends(get_car_repository),
    uploads=Depends(get_car_uploads),
    signer=Depends(get_signer),
    storage: ObjectStorage = Depends(get_object_storage_dep),
    scope: SessionScope = Depends(get_session_scope),
    settings: Settings = Depends(get_settings),
):
    """Phone upload of one car paper."""
    _require_upload_fields(file, token, document_type)
    service = MobileUploadService(
        CAR_FLOW, uploads, cars, signer, storage, settings.car_documents_bucket,
    )
    result = await service.ingest(
        token, document_type, file.filename, file.content_type, await file.read(),
    )
    background.add_task(
        run_best_effort, "record_scan", record_scan, scope, CAR_FLOW.kind, result.scan,
    )
    return result.to_response(document_type)


@car_router.get("/status")
async def car_upload_status(
    token: str | None = Query(None),
    cars=Depends(get_car_repository),
    uploads=Depends(get_car_uploads),
    signer=Depends(get_signer),
):
    service = MobileUploadService(CAR_FLOW, uploads, cars, signer)
    return await service.status(_require_token(token))


@car_router.post("/complete")
async def complete_car_upload(
    token: str | None = Body(None, embed=True),
    cars=Depends(get_car_repository),
    uploads=Depends(get_car_uploads),
    signer=Depends(get_signer),
):
    service = MobileUploadService(CAR_FLOW, uploads, cars, signer)
    return await service.complete(_require_token(token))
