"""Car ORM — a fleet vehicle with its registration, insurance and inspection papers.

Invariants:
    - id is UUID primary key
    - Document URL columns hold public storage URLs; NULL means not provided
    - Deleting a car requires removing upload, scan and token rows first
      (see SqlCarRepository.delete_with_dependents)
"""

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import String, Text, Integer, Float, Date, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from fleetdesk.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Car(Base):
    """Car record."""
    __tablename__ = "cars"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    brand: Mapped[str] = mapped_column(String(100), nullable=False)
    model: Mapped[str] = mapped_column(String(100), nullable=False)
    plate_number: Mapped[str] = mapped_column(String(50), nullable=False)
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    price_per_day: Mapped[float | None] = mapped_column(Float, nullable=True)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    features: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="available")

    # Document URLs
    carte_grise_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    insurance_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    technical_inspection_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    rental_agreement_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    other_documents_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Document dates
    carte_grise_issue_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    carte_grise_expiry_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    insurance_issue_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    insurance_expiry_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    technical_inspection_issue_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    technical_inspection_expiry_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    rental_agreement_start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    rental_agreement_end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow,
    )
