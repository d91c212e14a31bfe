"""Upload Document Slots — which document types each flow accepts and where they land.

Invariants:
    - Each document type maps to exactly one session column and one entity column
    - Core documents are a subset of the flow's accepted types
    - Storage keys are {upload_id}/{document_type}_{epoch_ms}{ext}, ext lower-cased

Design Decisions:
    - One UploadFlowProfile per EntityKind: client and car flows share all orchestration
      code and differ only in this table
    - Readiness is recomputed from the full URL map on every write (no incremental state)
"""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Mapping

from fleetdesk.core.domain_types import EntityKind, UploadFlow
from fleetdesk.core.errors import InvalidDocumentTypeError


@dataclass(frozen=True)
class DocumentSlot:
    """Where one document type is written."""
    session_field: str
    entity_field: str
    flag_key: str


@dataclass(frozen=True)
class UploadFlowProfile:
    kind: EntityKind
    flow: UploadFlow
    entity_claim: str
    upload_path: str
    slots: Mapping[str, DocumentSlot]
    core_documents: frozenset[str]

    @property
    def document_types(self) -> tuple[str, ...]:
        return tuple(self.slots)


CLIENT_FLOW = UploadFlowProfile(
    kind=EntityKind.CLIENT,
    flow=UploadFlow.CLIENT,
    entity_claim="clientId",
    upload_path="/mobile-upload",
    slots={
        "id_front": DocumentSlot("id_front_url", "id_front_image_url", "idFront"),
        "id_back": DocumentSlot("id_back_url", "id_back_image_url", "idBack"),
        "license_front": DocumentSlot("license_front_url", "license_front_image_url", "licenseFront"),
        "license_back": DocumentSlot("license_back_url", "license_back_image_url", "licenseBack"),
    },
    core_documents=frozenset({"id_front", "id_back", "license_front", "license_back"}),
)

CAR_FLOW = UploadFlowProfile(
    kind=EntityKind.CAR,
    flow=UploadFlow.CAR,
    entity_claim="carId",
    upload_path="/car-upload",
    slots={
        "carte_grise": DocumentSlot("carte_grise_url", "carte_grise_url", "carteGrise"),
        "insurance": DocumentSlot("insurance_url", "insurance_url", "insurance"),
        "inspection": DocumentSlot("inspection_url", "technical_inspection_url", "inspection"),
        "rental_agreement": DocumentSlot("rental_agreement_url", "rental_agreement_url", "rentalAgreement"),
        "other": DocumentSlot("other_url", "other_documents_url", "other"),
    },
    core_documents=frozenset({"carte_grise", "insurance", "inspection"}),
)

FLOW_PROFILES: dict[EntityKind, UploadFlowProfile] = {
    EntityKind.CLIENT: CLIENT_FLOW,
    EntityKind.CAR: CAR_FLOW,
}

# Columns on the car row that the direct (non-token) upload may write.
CAR_DOCUMENT_COLUMNS: dict[str, str] = {
    "carte_grise": "carte_grise_url",
    "insurance": "insurance_url",
    "technical_inspection": "technical_inspection_url",
    "inspection": "technical_inspection_url",
    "rental_agreement": "rental_agreement_url",
    "other_documents": "other_documents_url",
    "other": "other_documents_url",
}

_EXTENSION = re.compile(r"\.(\w+)$")


def resolve_slot(profile: UploadFlowProfile, document_type: str) -> DocumentSlot:
    """Return the slot for a declared type or raise InvalidDocumentTypeError."""
    slot = profile.slots.get(document_type)
    if slot is None:
        raise InvalidDocumentTypeError(document_type)
    return slot


def has_core_documents(profile: UploadFlowProfile, urls: Mapping[str, str | None]) -> bool:
    """True when every core document of the flow has a non-empty URL."""
    return all(
        urls.get(profile.slots[doc].session_field) for doc in profile.core_documents
    )


def document_flags(profile: UploadFlowProfile, urls: Mapping[str, str | None]) -> dict[str, bool]:
    return {slot.flag_key: bool(urls.get(slot.session_field)) for slot in profile.slots.values()}


def document_urls(profile: UploadFlowProfile, urls: Mapping[str, str | None]) -> dict[str, str | None]:
    return {slot.flag_key: urls.get(slot.session_field) for slot in profile.slots.values()}


def file_extension(filename: str | None, content_type: str | None) -> str:
    """Extension from the original filename, else guessed from the mime type."""
    match = _EXTENSION.search(filename or "")
    if match:
        return match.group(0).lower()
    return ".pdf" if content_type == "application/pdf" else ".jpg"


def build_storage_key(
    owner_id: object, document_type: str, filename: str | None,
    content_type: str | None, now: datetime,
) -> str:
    epoch_ms = int(now.timestamp() * 1000)
    ext = file_extension(filename, content_type)
    return f"{owner_id}/{document_type}_{epoch_ms}{ext}"


def build_document_key(document_type: str, filename: str | None, now: datetime) -> str:
    """Key for a desk upload that is not yet attached to a client."""
    epoch_ms = int(now.timestamp() * 1000)
    name = (filename or "document").replace("/", "_").replace("\\", "_")
    return f"{document_type}_{epoch_ms}_{name}"


def mime_type_for_key(key: str) -> str:
    """Content type to declare when re-sending a stored document."""
    ext = file_extension(key, None)
    return {
        ".pdf": "application/pdf",
        ".png": "image/png",
        ".webp": "image/webp",
        ".gif": "image/gif",
        ".bmp": "image/bmp",
    }.get(ext, "image/jpeg")
