"""Client ORM — a renter with identity, ID card and driving license data.

Invariants:
    - id is UUID primary key
    - email is unique when present; blank emails are stored as NULL
    - status in active | inactive | archived
    - *_image_url columns are public storage URLs written by uploads or image sync

Design Decisions:
    - JSON for license_categories: portable between PostgreSQL and the SQLite test database
    - Placeholder clients (created when a QR link is issued for an unknown id) use the
      same table with first_name "New Client"
"""

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import String, Text, Date, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from fleetdesk.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Client(Base):
    """Client record."""
    __tablename__ = "clients"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    first_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    last_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    email: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    gender: Mapped[str | None] = mapped_column(String(20), nullable=True)
    nationality: Mapped[str | None] = mapped_column(String(100), nullable=True)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)

    # ID document
    id_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    id_issue_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    id_expiry_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    id_front_image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    id_back_image_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Driving license
    license_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    license_issue_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    license_expiry_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    license_categories: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    license_front_image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    license_back_image_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Emergency contact
    emergency_contact_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    emergency_contact_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    emergency_contact_relationship: Mapped[str | None] = mapped_column(String(100), nullable=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow,
    )
