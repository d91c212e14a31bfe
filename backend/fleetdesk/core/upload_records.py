"""Upload Records — plain snapshots of token and session rows handed across the core/shell boundary.

Invariants:
    - Records are immutable snapshots; writes go back through UploadRepository
    - Datetimes are timezone-aware UTC (repositories normalize naive values)
"""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from fleetdesk.core.domain_types import ProcessingStatus, UploadStatus


@dataclass(frozen=True)
class UploadTokenRecord:
    id: UUID
    entity_id: UUID
    token: str
    expires_at: datetime
    used_at: datetime | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class UploadSessionRecord:
    id: UUID
    entity_id: UUID
    token_id: UUID
    urls: dict[str, str | None] = field(default_factory=dict)
    upload_status: UploadStatus = UploadStatus.PENDING
    processing_status: ProcessingStatus = ProcessingStatus.PENDING
    parsed_data: dict | None = None
    completed_at: datetime | None = None
    created_at: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "entity_id": str(self.entity_id),
            "qr_token_id": str(self.token_id),
            **self.urls,
            "upload_status": self.upload_status.value,
            "processing_status": self.processing_status.value,
            "parsed_data": self.parsed_data,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
