"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - ClientId, CarId, UploadTokenId, UploadId wrap UUIDs — never use bare UUID in domain logic
    - All valid states encoded as Enums — no raw string matching
    - UploadFlow values are the JWT "type" discriminators; changing them invalidates issued QR codes

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: stored verbatim in status columns and serialized to JSON without custom encoders
"""

from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

ClientId = NewType("ClientId", UUID)
CarId = NewType("CarId", UUID)
UploadTokenId = NewType("UploadTokenId", UUID)
UploadId = NewType("UploadId", UUID)


# ─── Enums ───────────────────────────────────────────────────────

class EntityKind(str, Enum):
    """Which record an upload flow writes into."""
    CLIENT = "client"
    CAR = "car"


class UploadFlow(str, Enum):
    """Credential discriminator — one per entity kind."""
    CLIENT = "qr_upload"
    CAR = "car_qr_upload"


class UploadStatus(str, Enum):
    """Raw `upload_status` column of an upload session."""
    PENDING = "pending"
    UPLOADING = "uploading"
    PROCESSING = "processing"
    READY_FOR_COMPLETION = "ready_for_completion"
    COMPLETED = "completed"
    MANUALLY_COMPLETED = "manually_completed"
    FAILED = "failed"


class ProcessingStatus(str, Enum):
    """Raw `processing_status` column of an upload session."""
    PENDING = "pending"
    READY = "ready"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class DerivedStatus(str, Enum):
    """Coarse status reported to polling clients."""
    PENDING = "pending"
    UPLOADING = "uploading"
    PROCESSING = "processing"
    READY_FOR_COMPLETION = "ready_for_completion"
    COMPLETED = "completed"
    MANUALLY_COMPLETED = "manually_completed"
    FAILED = "failed"


class ClientStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    ARCHIVED = "archived"


class CarStatus(str, Enum):
    AVAILABLE = "available"
    RENTED = "rented"
    MAINTENANCE = "maintenance"
