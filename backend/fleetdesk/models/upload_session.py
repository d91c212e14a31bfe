"""Upload Session ORM — documents received for one entity under one token.

Invariants:
    - At most one session per (entity_id, qr_token_id)
    - upload_status / processing_status hold UploadStatus / ProcessingStatus values
    - completed_at set when processing finishes or a desk user completes the session
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, DateTime, JSON, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from fleetdesk.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ClientUpload(Base):
    """Mobile upload session for a client's ID card and license."""
    __tablename__ = "client_uploads"
    __table_args__ = (UniqueConstraint("client_id", "qr_token_id"),)

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    entity_id: Mapped[uuid.UUID] = mapped_column(
        "client_id", UUID(as_uuid=True),
        ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    qr_token_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("client_upload_tokens.id", ondelete="CASCADE"), nullable=False,
    )
    id_front_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    id_back_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    license_front_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    license_back_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    upload_status: Mapped[str] = mapped_column(String(30), nullable=False, default="pending")
    processing_status: Mapped[str] = mapped_column(String(30), nullable=False, default="pending")
    parsed_data: Mapped[dict | None] = mapped_column(JSON(none_as_null=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow,
    )


class CarUpload(Base):
    """Mobile upload session for a car's papers."""
    __tablename__ = "car_uploads"
    __table_args__ = (UniqueConstraint("car_id", "qr_token_id"),)

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    entity_id: Mapped[uuid.UUID] = mapped_column(
        "car_id", UUID(as_uuid=True),
        ForeignKey("cars.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    qr_token_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("car_upload_tokens.id", ondelete="CASCADE"), nullable=False,
    )
    carte_grise_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    insurance_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    inspection_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    rental_agreement_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    other_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    upload_status: Mapped[str] = mapped_column(String(30), nullable=False, default="pending")
    processing_status: Mapped[str] = mapped_column(String(30), nullable=False, default="pending")
    parsed_data: Mapped[dict | None] = mapped_column(JSON(none_as_null=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow,
    )
