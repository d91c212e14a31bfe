"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection (FastAPI Depends)

Design Decisions:
    - Protocol over ABC: structural subtyping, tests pass plain fakes without inheritance
    - Async in Protocol: boundary methods are async because implementations do IO,
      but core pure functions that USE these protocols are never async themselves
"""

from datetime import datetime
from typing import Protocol
from uuid import UUID

from fleetdesk.core.domain_types import ProcessingStatus, UploadStatus, UploadFlow
from fleetdesk.core.upload_records import UploadSessionRecord, UploadTokenRecord


class ClientRepository(Protocol):
    """Contract for client persistence — rows returned as plain dicts."""
    async def get(self, client_id: UUID) -> dict | None: ...
    async def list_all(self) -> list[dict]: ...
    async def create(self, fields: dict, client_id: UUID | None = None) -> dict: ...
    async def update_fields(self, client_id: UUID, fields: dict) -> dict | None: ...
    async def sync_images(self, client_id: UUID) -> dict | None: ...
    async def list_images(self, client_id: UUID) -> list[dict]: ...


class CarRepository(Protocol):
    """Contract for car persistence — rows returned as plain dicts."""
    async def get(self, car_id: UUID) -> dict | None: ...
    async def list_all(self) -> list[dict]: ...
    async def create(self, fields: dict) -> dict: ...
    async def update_fields(self, car_id: UUID, fields: dict) -> dict | None: ...
    async def delete_with_dependents(self, car_id: UUID) -> None: ...


class UploadRepository(Protocol):
    """Contract for one flow's tokens, sessions and scan-audit rows."""
    async def create_token(self, entity_id: UUID, token: str, expires_at: datetime) -> UploadTokenRecord: ...
    async def get_token(self, token_id: UUID) -> UploadTokenRecord | None: ...
    async def list_tokens(self, entity_id: UUID) -> list[UploadTokenRecord]: ...
    async def find_session(self, entity_id: UUID, token_id: UUID) -> UploadSessionRecord | None: ...
    async def get_session(self, upload_id: UUID) -> UploadSessionRecord | None: ...
    async def create_session(self, entity_id: UUID, token_id: UUID) -> UploadSessionRecord: ...
    async def get_or_create_session(self, entity_id: UUID, token_id: UUID) -> UploadSessionRecord: ...
    async def list_sessions(self, entity_id: UUID) -> list[UploadSessionRecord]: ...
    async def latest_parsed_data(self, entity_id: UUID) -> dict | None: ...
    async def update_session(
        self, upload_id: UUID, *,
        urls: dict[str, str] | None = None,
        upload_status: UploadStatus | None = None,
        processing_status: ProcessingStatus | None = None,
        parsed_data: dict | None = None,
        completed_at: datetime | None = None,
    ) -> UploadSessionRecord: ...
    async def transition_session(
        self, upload_id: UUID, expected: UploadStatus, *,
        upload_status: UploadStatus,
        processing_status: ProcessingStatus,
        parsed_data: dict | None = None,
        completed_at: datetime | None = None,
    ) -> bool: ...
    async def complete_session(self, upload_id: UUID, token_id: UUID, now: datetime) -> bool: ...
    async def record_scan(self, scan: dict) -> None: ...


class ObjectStorage(Protocol):
    """Contract for binary document storage (S3-compatible)."""
    async def upload(self, bucket: str, key: str, data: bytes, content_type: str | None) -> None: ...
    async def download(self, bucket: str, key: str) -> bytes: ...
    def public_url(self, bucket: str, key: str) -> str: ...
    def key_from_url(self, bucket: str, url: str) -> str | None: ...


class DocumentParser(Protocol):
    """Contract for the external Document AI processor call."""
    async def process(self, content: bytes, mime_type: str, processor_id: str) -> dict: ...


class CredentialSigner(Protocol):
    """Contract for signing and decoding upload credentials."""
    def issue(self, flow: UploadFlow, claim: str, entity_id: UUID, token_id: UUID) -> str: ...
    def decode(self, credential: str) -> dict: ...
