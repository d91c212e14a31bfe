"""Document Scan ORM — audit trail of every file received through a QR link.

Invariants:
    - Append-only; rows are written best-effort and may be missing
    - storage_path is the object key inside the flow's bucket
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, Integer, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from fleetdesk.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ClientDocumentScan(Base):
    __tablename__ = "client_document_scans"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    entity_id: Mapped[uuid.UUID] = mapped_column(
        "client_id", UUID(as_uuid=True),
        ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    qr_token_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("client_upload_tokens.id", ondelete="CASCADE"), nullable=True,
    )
    document_type: Mapped[str] = mapped_column(String(30), nullable=False)
    storage_path: Mapped[str] = mapped_column(Text, nullable=False)
    public_url: Mapped[str] = mapped_column(Text, nullable=False)
    mime_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    size_bytes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )


class CarDocumentScan(Base):
    __tablename__ = "car_document_scans"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    entity_id: Mapped[uuid.UUID] = mapped_column(
        "car_id", UUID(as_uuid=True),
        ForeignKey("cars.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    qr_token_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("car_upload_tokens.id", ondelete="CASCADE"), nullable=True,
    )
    document_type: Mapped[str] = mapped_column(String(30), nullable=False)
    storage_path: Mapped[str] = mapped_column(Text, nullable=False)
    public_url: Mapped[str] = mapped_column(Text, nullable=False)
    mime_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    size_bytes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
