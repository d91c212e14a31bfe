"""Client Document Processing — OCR of a ready client upload session, run as a background task.

Invariants:
    - Session moves ready_for_completion -> processing -> completed/completed, or
      -> failed/failed; every move is conditional on the previous status
    - A manual completion during processing wins: OCR results are discarded and the
      client row is left untouched
    - Front sides assign fields, back sides only fill blanks
    - A single image failing (download or OCR) is logged and skipped;
      no image yielding fields fails the whole session
    - Extracted names, dates, numbers and the four image URLs are copied onto the client

Design Decisions:
    - Opens its own database session through a SessionScope: the request session is
      closed by the time the background task runs
    - Never raises: the failure is recorded on the session row and logged
"""

import logging
from datetime import datetime, timezone
from uuid import UUID

from fleetdesk.core.client_fields import fields_from_parsed
from fleetdesk.core.domain_types import EntityKind, ProcessingStatus, UploadStatus
from fleetdesk.core.errors import DocumentAIError, FleetDeskError
from fleetdesk.core.ocr_fields import merge_fields
from fleetdesk.core.repository_protocols import ObjectStorage
from fleetdesk.core.upload_documents import CLIENT_FLOW, mime_type_for_key
from fleetdesk.infrastructure.database import SessionScope
from fleetdesk.infrastructure.repositories import SqlClientRepository, SqlUploadRepository
from fleetdesk.infrastructure.side_effects import run_best_effort
from fleetdesk.services.ocr import OcrService

logger = logging.getLogger(__name__)

# document type -> (OCR document type, side)
OCR_KINDS = {
    "id_front": ("cin", "front"),
    "id_back": ("cin", "back"),
    "license_front": ("driver_license", "front"),
    "license_back": ("driver_license", "back"),
}


async def _extract_all(
    urls: dict, storage: ObjectStorage, bucket: str, ocr: OcrService, upload_id: UUID,
) -> tuple[dict, dict]:
    parsed: dict = {}
    client_fields: dict = {}
    for document_type, (ocr_type, side) in OCR_KINDS.items():
        url = urls.get(CLIENT_FLOW.slots[document_type].session_field)
        key = storage.key_from_url(bucket, url) if url else None
        if not key:
            continue
        try:
            content = await storage.download(bucket, key)
            data = await ocr.extract(content, mime_type_for_key(key), ocr_type, side)
        except FleetDeskError as e:
            logger.warning(
                f"Skipping {document_type}: {e.message}",
                extra={"upload_id": upload_id, "document_type": document_type, "error_code": e.code},
            )
            continue
        overwrite = side == "front"
        parsed = merge_fields(parsed, data["fields"], overwrite=overwrite)
        client_fields = merge_fields(
            client_fields, fields_from_parsed(data["fields"]), overwrite=overwrite,
        )
    return parsed, client_fields


async def _mark_failed(scope: SessionScope, upload_id: UUID) -> None:
    async with scope() as db:
        moved = await SqlUploadRepository(db, EntityKind.CLIENT).transition_session(
            upload_id, UploadStatus.PROCESSING,
            upload_status=UploadStatus.FAILED,
            processing_status=ProcessingStatus.FAILED,
        )
    if not moved:
        logger.info(
            "Upload left processing before the failure was recorded",
            extra={"upload_id": upload_id},
        )


async def process_client_documents(
    scope: SessionScope,
    storage: ObjectStorage,
    ocr: OcrService,
    bucket: str,
    upload_id: UUID,
) -> None:
    """Run OCR over a ready client session and copy the results onto the client."""
    try:
        async with scope() as db:
            uploads = SqlUploadRepository(db, EntityKind.CLIENT)
            clients = SqlClientRepository(db)
            session = await uploads.get_session(upload_id)
            if session is None:
                logger.warning("Upload vanished before processing", extra={"upload_id": upload_id})
                return
            started = await uploads.transition_session(
                upload_id, UploadStatus.READY_FOR_COMPLETION,
                upload_status=UploadStatus.PROCESSING,
                processing_status=ProcessingStatus.PROCESSING,
            )
            if not started:
                logger.info(
                    "Upload no longer ready, skipping processing",
                    extra={"upload_id": upload_id},
                )
                return

            parsed, client_fields = await _extract_all(
                session.urls, storage, bucket, ocr, upload_id,
            )
            if not parsed:
                raise DocumentAIError("no image could be processed")

            for slot in CLIENT_FLOW.slots.values():
                if session.urls.get(slot.session_field):
                    client_fields[slot.entity_field] = session.urls[slot.session_field]

            finished = await uploads.transition_session(
                upload_id, UploadStatus.PROCESSING,
                parsed_data=parsed,
                upload_status=UploadStatus.COMPLETED,
                processing_status=ProcessingStatus.COMPLETED,
                completed_at=datetime.now(timezone.utc),
            )
            if not finished:
                logger.info(
                    "Upload completed manually during processing, results discarded",
                    extra={"upload_id": upload_id, "entity_id": session.entity_id},
                )
                return
            await clients.update_fields(session.entity_id, client_fields)
        logger.info(
            "Client documents processed",
            extra={"upload_id": upload_id, "entity_id": session.entity_id},
        )
    except Exception as e:
        logger.error(
            f"Document processing failed: {e}",
            exc_info=True,
            extra={"upload_id": upload_id, "fail_reason": type(e).__name__},
        )
        await run_best_effort("mark_upload_failed", _mark_failed, scope, upload_id)
