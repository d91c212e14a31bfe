"""Upload Token ORM — one row per issued QR link, per entity kind.

Invariants:
    - expires_at is set at issuance (5 minutes) and never extended
    - used_at NULL means the token can still accept uploads; set once, by completion
    - entity_id maps to the client_id / car_id column of the respective table

Design Decisions:
    - Two tables (client_upload_tokens, car_upload_tokens) instead of a polymorphic one:
      each FK points at exactly one parent table
    - Uniform `entity_id` attribute: repositories handle both kinds with one code path
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from fleetdesk.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ClientUploadToken(Base):
    """QR upload token scoped to a client."""
    __tablename__ = "client_upload_tokens"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    entity_id: Mapped[uuid.UUID] = mapped_column(
        "client_id", UUID(as_uuid=True),
        ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    token: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )


class CarUploadToken(Base):
    """QR upload token scoped to a car."""
    __tablename__ = "car_upload_tokens"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    entity_id: Mapped[uuid.UUID] = mapped_column(
        "car_id", UUID(as_uuid=True),
        ForeignKey("cars.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    token: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
