"""OCR Routes — Document AI extraction on an uploaded file or a stored front/back pair.

Invariants:
    - Files over 10 MB or with an unsupported mime type → 400 before any remote call
    - Missing GCP configuration → 500 CONFIGURATION_ERROR
"""

from fastapi import APIRouter, Depends, File, Form, UploadFile

from fleetdesk.api.dependencies import get_document_parser, get_object_storage_dep
from fleetdesk.config import Settings, get_settings
from fleetdesk.core.errors import InvalidRequestError
from fleetdesk.core.repository_protocols import DocumentParser, ObjectStorage
from fleetdesk.schemas.ocr import ProcessDocumentsRequest
from fleetdesk.services.ocr import OcrService

router = APIRouter(prefix="/api", tags=["ocr"])


@router.post("/ocr/process")
async def process_ocr(
    file: UploadFile | None = File(None),
    document_type: str = Form("auto", alias="documentType"),
    side: str = Form("auto"),
    parser: DocumentParser = Depends(get_document_parser),
    settings: Settings = Depends(get_settings),
):
    """Extract ID card / license fields from one image."""
    if file is None:
        raise InvalidRequestError("No file provided", "file")
    content = await file.read()
    data = await OcrService(parser, settings).extract(
        content, file.content_type, document_type or "auto", side or "auto",
    )
    return {"success": True, "data": data, "processingTime": data["processingTime"]}


@router.post("/process-documents")
async def process_documents(
    body: ProcessDocumentsRequest,
    parser: DocumentParser = Depends(get_document_parser),
    storage: ObjectStorage = Depends(get_object_storage_dep),
    settings: Settings = Depends(get_settings),
):
    """OCR a stored front/back pair from the client bucket and merge the fields."""
    merged = await OcrService(parser, settings).extract_pair(
        storage, settings.client_documents_bucket,
        body.document_type, body.front_image_url, body.back_image_url,
    )
    return {"success": True, "data": merged}
