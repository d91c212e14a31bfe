"""OCR Service — Document AI extraction for ID cards and driving licenses.

Invariants:
    - File size and mime type are checked before any remote call
    - Auto mode costs one extra call: a quick pass with the CIN-front processor
    - The processor is chosen per (document_type, side) after detection
    - extract_pair downloads both sides, fronts assign and backs only fill blanks

Design Decisions:
    - Parser and storage arrive through the constructor (Protocol types) so route
      tests swap in fakes without touching httpx or boto3
"""

import logging
import time

from fleetdesk.config import Settings
from fleetdesk.core.errors import FleetDeskError, InvalidRequestError
from fleetdesk.core.ocr_fields import (
    DOCUMENT_TYPES, SIDES, detect_document_kind, map_entities, merge_fields,
    overall_confidence, validate_upload_file,
)
from fleetdesk.core.repository_protocols import DocumentParser, ObjectStorage
from fleetdesk.core.upload_documents import mime_type_for_key

logger = logging.getLogger(__name__)

AUTO = "auto"


class OcrService:
    """Runs extraction for uploaded or stored documents."""

    def __init__(self, parser: DocumentParser, settings: Settings):
        self.parser = parser
        self.settings = settings

    async def extract(
        self, content: bytes, mime_type: str | None,
        document_type: str = AUTO, side: str = AUTO,
    ) -> dict:
        """Extract fields from one image. Returns the `data` block of the response."""
        if document_type not in (AUTO, *DOCUMENT_TYPES):
            raise InvalidRequestError(f"Unsupported documentType: {document_type}", "documentType")
        if side not in (AUTO, *SIDES):
            raise InvalidRequestError(f"Unsupported side: {side}", "side")
        problem = validate_upload_file(len(content), mime_type)
        if problem:
            raise InvalidRequestError(problem, "file")

        started = time.monotonic()
        if document_type == AUTO or side == AUTO:
            quick = await self.parser.process(
                content, mime_type, self.settings.processor_for("cin", "front"),
            )
            detected_type, detected_side = detect_document_kind(quick["text"])
            if document_type == AUTO:
                document_type = detected_type
            if side == AUTO:
                side = detected_side
            logger.info(f"Detected {document_type} {side}", extra={"document_type": document_type})

        processor_id = self.settings.processor_for(document_type, side)
        result = await self.parser.process(content, mime_type, processor_id)
        fields = map_entities(result["entities"], result["text"], document_type, side)
        elapsed_ms = int((time.monotonic() - started) * 1000)
        return {
            "documentType": document_type,
            "side": side,
            "fields": fields,
            "confidence": overall_confidence(result["entities"]),
            "processingTime": elapsed_ms,
        }

    async def extract_pair(
        self, storage: ObjectStorage, bucket: str,
        document_type: str, front_url: str, back_url: str,
    ) -> dict:
        """OCR a stored front/back pair and merge the fields."""
        hint = document_type if document_type in DOCUMENT_TYPES else AUTO
        merged: dict = {}
        for url, side, overwrite in ((front_url, "front", True), (back_url, "back", False)):
            key = storage.key_from_url(bucket, url)
            if not key:
                logger.warning(f"Skipping {side} image outside bucket {bucket}")
                continue
            try:
                content = await storage.download(bucket, key)
                data = await self.extract(content, mime_type_for_key(key), hint, side)
            except FleetDeskError as e:
                logger.warning(
                    f"Skipping {side} image: {e.message}", extra={"error_code": e.code},
                )
                continue
            merged = merge_fields(merged, data["fields"], overwrite=overwrite)
        return merged
