"""Mobile Upload — verify, ingest, poll and complete for both QR flows.

Invariants:
    - Document type is validated before the credential (400 beats 401)
    - Ingestion requires an unused token; status and completion accept a used one
    - A session becomes ready_for_completion/ready once every core document has a URL,
      recomputed from the stored URL map after each write
    - Two first uploads under one token share one session (get_or_create_session)
    - Status writes are conditional on the status read, so an upload never undoes a
      concurrent completion; FAILED sessions become ready again on a new document
    - Completion is single-use: the second call for a session is a 409
    - Rejection reasons are logged here and never leave the process

Design Decisions:
    - One service for both flows, parameterized by UploadFlowProfile (client vs car)
    - Scan audit rows are returned to the route, which schedules them best-effort
    - Client OCR is triggered by the route when ingest reports the session just became ready
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from fleetdesk.core.domain_types import EntityKind, ProcessingStatus, UploadStatus
from fleetdesk.core.errors import (
    ResourceNotFoundError, UploadAlreadyCompletedError, UploadTokenError,
)
from fleetdesk.core.repository_protocols import (
    CredentialSigner, ObjectStorage, UploadRepository,
)
from fleetdesk.core.upload_credentials import (
    UploadClaims, check_token_row, claims_from_payload,
)
from fleetdesk.core.upload_documents import (
    UploadFlowProfile, build_storage_key, document_flags, document_urls,
    has_core_documents, resolve_slot,
)
from fleetdesk.core.upload_records import UploadSessionRecord, UploadTokenRecord
from fleetdesk.core.upload_status import derive_status
from fleetdesk.infrastructure.database import SessionScope
from fleetdesk.infrastructure.repositories import SqlUploadRepository

logger = logging.getLogger(__name__)

# Statuses a complete core set moves to ready_for_completion. FAILED is included:
# re-uploading a document after failed OCR makes the session ready again and, for
# clients with Document AI configured, starts processing once more.
_READY_FROM = frozenset({
    UploadStatus.PENDING, UploadStatus.UPLOADING, UploadStatus.FAILED,
})


@dataclass(frozen=True)
class IngestResult:
    session: UploadSessionRecord
    url: str
    scan: dict
    became_ready: bool

    def to_response(self, document_type: str) -> dict:
        return {
            "success": True,
            "documentType": document_type,
            "uploadId": str(self.session.id),
            "url": self.url,
        }


class MobileUploadService:
    """Token-authenticated document uploads for one flow."""

    def __init__(
        self,
        profile: UploadFlowProfile,
        uploads: UploadRepository,
        entities,
        signer: CredentialSigner,
        storage: ObjectStorage | None = None,
        bucket: str | None = None,
    ):
        self.profile = profile
        self.uploads = uploads
        self.entities = entities
        self.signer = signer
        self.storage = storage
        self.bucket = bucket

    async def verify(
        self, credential: str, now: datetime, allow_used: bool = False,
    ) -> tuple[UploadClaims, UploadTokenRecord]:
        try:
            claims = claims_from_payload(self.signer.decode(credential), self.profile)
            row = await self.uploads.get_token(claims.token_id)
            check_token_row(row, claims, now, allow_used=allow_used)
        except UploadTokenError as e:
            logger.warning(
                "Upload credential rejected",
                extra={"fail_reason": e.reason.value, "flow": self.profile.flow.value},
            )
            raise
        return claims, row

    async def ingest(
        self,
        credential: str,
        document_type: str,
        filename: str | None,
        content_type: str | None,
        data: bytes,
        now: datetime | None = None,
    ) -> IngestResult:
        now = now or datetime.now(timezone.utc)
        slot = resolve_slot(self.profile, document_type)
        claims, token = await self.verify(credential, now)

        session = await self.uploads.get_or_create_session(claims.entity_id, token.id)

        key = build_storage_key(session.id, document_type, filename, content_type, now)
        await self.storage.upload(self.bucket, key, data, content_type)
        url = self.storage.public_url(self.bucket, key)

        session = await self.uploads.update_session(
            session.id, urls={slot.session_field: url},
        )
        await self.entities.update_fields(claims.entity_id, {slot.entity_field: url})

        became_ready = False
        if (
            has_core_documents(self.profile, session.urls)
            and session.upload_status in _READY_FROM
        ):
            # conditional: a concurrent upload or completion may have moved it already
            became_ready = await self.uploads.transition_session(
                session.id, session.upload_status,
                upload_status=UploadStatus.READY_FOR_COMPLETION,
                processing_status=ProcessingStatus.READY,
            )
            session = await self.uploads.get_session(session.id) or session

        logger.info(
            "Document received",
            extra={
                "entity_id": claims.entity_id,
                "upload_id": session.id,
                "document_type": document_type,
            },
        )
        scan = {
            "entity_id": claims.entity_id,
            "qr_token_id": token.id,
            "document_type": document_type,
            "storage_path": key,
            "public_url": url,
            "mime_type": content_type,
            "size_bytes": len(data),
        }
        return IngestResult(session=session, url=url, scan=scan, became_ready=became_ready)

    async def status(self, credential: str, now: datetime | None = None) -> dict:
        now = now or datetime.now(timezone.utc)
        claims, token = await self.verify(credential, now, allow_used=True)
        session = await self.uploads.find_session(claims.entity_id, token.id)
        urls = session.urls if session else {}
        if session is None:
            upload_status, processing_status = UploadStatus.PENDING, ProcessingStatus.PENDING
        else:
            upload_status, processing_status = session.upload_status, session.processing_status
        return {
            "success": True,
            "status": derive_status(upload_status, processing_status).value,
            "uploadStatus": upload_status.value,
            "processingStatus": processing_status.value,
            "documents": document_flags(self.profile, urls),
            "urls": document_urls(self.profile, urls),
            "parsedData": session.parsed_data if session else None,
            "completedAt": (
                session.completed_at.isoformat()
                if session and session.completed_at else None
            ),
        }

    async def complete(self, credential: str, now: datetime | None = None) -> dict:
        now = now or datetime.now(timezone.utc)
        claims, token = await self.verify(credential, now, allow_used=True)
        session = await self.uploads.find_session(claims.entity_id, token.id)
        if session is None:
            raise ResourceNotFoundError("Upload session", str(token.id))
        if (
            session.upload_status is UploadStatus.MANUALLY_COMPLETED
            or token.used_at is not None
        ):
            raise UploadAlreadyCompletedError()
        if not await self.uploads.complete_session(session.id, token.id, now):
            raise UploadAlreadyCompletedError()

        logger.info(
            "Upload completed",
            extra={"entity_id": claims.entity_id, "upload_id": session.id},
        )
        return {
            "success": True,
            "message": "Upload marked as completed",
            self.profile.entity_claim: str(claims.entity_id),
        }


async def record_scan(scope: SessionScope, kind: EntityKind, scan: dict) -> None:
    """Append one scan-audit row in its own session (runs after the response)."""
    async with scope() as db:
        await SqlUploadRepository(db, kind).record_scan(scan)
