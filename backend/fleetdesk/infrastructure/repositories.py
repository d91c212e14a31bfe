"""SQL Repositories — SQLAlchemy implementations of the core repository Protocols.

Invariants:
    - Rows leave this module as plain dicts (Base.as_dict) or core upload records
    - Datetimes read back from the database are normalized to aware UTC
    - complete_session is the only writer of used_at, and it writes it at most once
    - Client email collisions surface as DuplicateEmailError, never as a raw IntegrityError
    - get_or_create_session never fails on the (entity, token) unique constraint: a lost
      insert race rolls back and returns the row the other request created
    - transition_session and complete_session only write when the status is still the
      expected one; background OCR never overwrites a manual completion

Design Decisions:
    - One SqlUploadRepository parameterized by EntityKind: client and car tables share
      the same attribute names (entity_id, qr_token_id, upload_status...)
    - Conditional UPDATEs for completion: two concurrent completions race on the WHERE
      clause, exactly one sees an affected row
    - populate_existing on reads: a request may read a row it already updated through
      a bulk UPDATE in the same session
"""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import select, update, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fleetdesk.core.domain_types import EntityKind, ProcessingStatus, UploadStatus
from fleetdesk.core.errors import DatabaseError, DuplicateEmailError
from fleetdesk.core.upload_credentials import as_utc
from fleetdesk.core.upload_documents import CLIENT_FLOW, FLOW_PROFILES
from fleetdesk.core.upload_records import UploadSessionRecord, UploadTokenRecord
from fleetdesk.models.car import Car
from fleetdesk.models.client import Client
from fleetdesk.models.document_scan import CarDocumentScan, ClientDocumentScan
from fleetdesk.models.upload_session import CarUpload, ClientUpload
from fleetdesk.models.upload_token import CarUploadToken, ClientUploadToken

logger = logging.getLogger(__name__)

# kind -> (token table, session table, scan table)
FLOW_TABLES = {
    EntityKind.CLIENT: (ClientUploadToken, ClientUpload, ClientDocumentScan),
    EntityKind.CAR: (CarUploadToken, CarUpload, CarDocumentScan),
}


def _utc_or_none(value: datetime | None) -> datetime | None:
    return as_utc(value) if value is not None else None


def _assign(row, fields: dict) -> None:
    columns = {attr.key for attr in row.__mapper__.column_attrs}
    for key, value in fields.items():
        if key in columns and key != "id":
            setattr(row, key, value)


class SqlClientRepository:
    """Client persistence."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _fetch(self, client_id: UUID) -> Client | None:
        result = await self.db.execute(
            select(Client)
            .where(Client.id == client_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get(self, client_id: UUID) -> dict | None:
        client = await self._fetch(client_id)
        return client.as_dict() if client else None

    async def list_all(self) -> list[dict]:
        result = await self.db.execute(
            select(Client).order_by(Client.created_at.desc())
        )
        return [c.as_dict() for c in result.scalars().all()]

    async def create(self, fields: dict, client_id: UUID | None = None) -> dict:
        client = Client()
        _assign(client, fields)
        if client_id is not None:
            client.id = client_id
        self.db.add(client)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            if fields.get("email") and "email" in str(e.orig).lower():
                raise DuplicateEmailError()
            logger.error(f"Client insert failed: {e}")
            raise DatabaseError(str(e.orig), "insert")
        await self.db.refresh(client)
        return client.as_dict()

    async def update_fields(self, client_id: UUID, fields: dict) -> dict | None:
        client = await self._fetch(client_id)
        if not client:
            return None
        _assign(client, fields)
        await self.db.commit()
        await self.db.refresh(client)
        return client.as_dict()

    async def _uploads(self, client_id: UUID) -> list[ClientUpload]:
        result = await self.db.execute(
            select(ClientUpload)
            .where(ClientUpload.entity_id == client_id)
            .order_by(ClientUpload.created_at.desc())
        )
        return list(result.scalars().all())

    async def sync_images(self, client_id: UUID) -> dict | None:
        """Copy the newest uploaded image per slot onto the client row."""
        client = await self._fetch(client_id)
        if not client:
            return None
        copied: dict[str, str] = {}
        for upload in await self._uploads(client_id):
            for slot in CLIENT_FLOW.slots.values():
                url = getattr(upload, slot.session_field)
                if url and slot.entity_field not in copied:
                    copied[slot.entity_field] = url
        if copied:
            _assign(client, copied)
            await self.db.commit()
            await self.db.refresh(client)
        return client.as_dict()

    async def list_images(self, client_id: UUID) -> list[dict]:
        images = []
        for upload in await self._uploads(client_id):
            for document_type, slot in CLIENT_FLOW.slots.items():
                url = getattr(upload, slot.session_field)
                if url:
                    images.append({
                        "uploadId": str(upload.id),
                        "documentType": document_type,
                        "url": url,
                        "createdAt": upload.created_at.isoformat(),
                    })
        return images


class SqlCarRepository:
    """Car persistence."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _fetch(self, car_id: UUID) -> Car | None:
        result = await self.db.execute(
            select(Car)
            .where(Car.id == car_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get(self, car_id: UUID) -> dict | None:
        car = await self._fetch(car_id)
        return car.as_dict() if car else None

    async def list_all(self) -> list[dict]:
        result = await self.db.execute(select(Car).order_by(Car.created_at.desc()))
        return [c.as_dict() for c in result.scalars().all()]

    async def create(self, fields: dict) -> dict:
        car = Car()
        _assign(car, fields)
        self.db.add(car)
        await self.db.commit()
        await self.db.refresh(car)
        return car.as_dict()

    async def update_fields(self, car_id: UUID, fields: dict) -> dict | None:
        car = await self._fetch(car_id)
        if not car:
            return None
        _assign(car, fields)
        await self.db.commit()
        await self.db.refresh(car)
        return car.as_dict()

    async def delete_with_dependents(self, car_id: UUID) -> None:
        """Remove uploads, scans and tokens, then the car, in one transaction."""
        await self.db.execute(delete(CarUpload).where(CarUpload.entity_id == car_id))
        await self.db.execute(delete(CarDocumentScan).where(CarDocumentScan.entity_id == car_id))
        await self.db.execute(delete(CarUploadToken).where(CarUploadToken.entity_id == car_id))
        await self.db.execute(delete(Car).where(Car.id == car_id))
        await self.db.commit()


class SqlUploadRepository:
    """Tokens, sessions and scan rows of one upload flow."""

    def __init__(self, db: AsyncSession, kind: EntityKind):
        self.db = db
        self.profile = FLOW_PROFILES[kind]
        self.token_model, self.session_model, self.scan_model = FLOW_TABLES[kind]

    def _token_record(self, row) -> UploadTokenRecord:
        return UploadTokenRecord(
            id=row.id,
            entity_id=row.entity_id,
            token=row.token,
            expires_at=as_utc(row.expires_at),
            used_at=_utc_or_none(row.used_at),
            created_at=_utc_or_none(row.created_at),
        )

    def _session_record(self, row) -> UploadSessionRecord:
        return UploadSessionRecord(
            id=row.id,
            entity_id=row.entity_id,
            token_id=row.qr_token_id,
            urls={
                slot.session_field: getattr(row, slot.session_field)
                for slot in self.profile.slots.values()
            },
            upload_status=UploadStatus(row.upload_status),
            processing_status=ProcessingStatus(row.processing_status),
            parsed_data=row.parsed_data,
            completed_at=_utc_or_none(row.completed_at),
            created_at=_utc_or_none(row.created_at),
        )

    async def _fetch_session(self, upload_id: UUID):
        result = await self.db.execute(
            select(self.session_model)
            .where(self.session_model.id == upload_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    # ─── Tokens ─────────────────────────────────────────────────

    async def create_token(
        self, entity_id: UUID, token: str, expires_at: datetime,
    ) -> UploadTokenRecord:
        row = self.token_model(entity_id=entity_id, token=token, expires_at=expires_at)
        self.db.add(row)
        await self.db.commit()
        await self.db.refresh(row)
        return self._token_record(row)

    async def get_token(self, token_id: UUID) -> UploadTokenRecord | None:
        result = await self.db.execute(
            select(self.token_model)
            .where(self.token_model.id == token_id)
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        return self._token_record(row) if row else None

    async def list_tokens(self, entity_id: UUID) -> list[UploadTokenRecord]:
        result = await self.db.execute(
            select(self.token_model)
            .where(self.token_model.entity_id == entity_id)
            .order_by(self.token_model.created_at.desc())
        )
        return [self._token_record(r) for r in result.scalars().all()]

    # ─── Sessions ───────────────────────────────────────────────

    async def find_session(
        self, entity_id: UUID, token_id: UUID,
    ) -> UploadSessionRecord | None:
        result = await self.db.execute(
            select(self.session_model)
            .where(self.session_model.entity_id == entity_id)
            .where(self.session_model.qr_token_id == token_id)
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        return self._session_record(row) if row else None

    async def get_session(self, upload_id: UUID) -> UploadSessionRecord | None:
        row = await self._fetch_session(upload_id)
        return self._session_record(row) if row else None

    async def create_session(
        self, entity_id: UUID, token_id: UUID,
    ) -> UploadSessionRecord:
        row = self.session_model(
            entity_id=entity_id,
            qr_token_id=token_id,
            upload_status=UploadStatus.UPLOADING.value,
            processing_status=ProcessingStatus.PENDING.value,
        )
        self.db.add(row)
        await self.db.commit()
        await self.db.refresh(row)
        return self._session_record(row)

    async def get_or_create_session(
        self, entity_id: UUID, token_id: UUID,
    ) -> UploadSessionRecord:
        """Session of (entity, token), inserting it when absent.

        Two first uploads may both miss the row; the loser of the insert hits the
        (entity, token) unique constraint, rolls back and reads the winner's row.
        """
        existing = await self.find_session(entity_id, token_id)
        if existing is not None:
            return existing
        try:
            return await self.create_session(entity_id, token_id)
        except IntegrityError:
            await self.db.rollback()
            logger.info(
                "Upload session created concurrently, reusing it",
                extra={"entity_id": entity_id},
            )
        winner = await self.find_session(entity_id, token_id)
        if winner is None:
            raise DatabaseError(f"session for token {token_id} missing after conflict", "insert")
        return winner

    async def list_sessions(self, entity_id: UUID) -> list[UploadSessionRecord]:
        result = await self.db.execute(
            select(self.session_model)
            .where(self.session_model.entity_id == entity_id)
            .order_by(self.session_model.created_at.desc())
        )
        return [self._session_record(r) for r in result.scalars().all()]

    async def latest_parsed_data(self, entity_id: UUID) -> dict | None:
        result = await self.db.execute(
            select(self.session_model.parsed_data)
            .where(self.session_model.entity_id == entity_id)
            .where(self.session_model.parsed_data.isnot(None))
            .order_by(self.session_model.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def update_session(
        self, upload_id: UUID, *,
        urls: dict[str, str] | None = None,
        upload_status: UploadStatus | None = None,
        processing_status: ProcessingStatus | None = None,
        parsed_data: dict | None = None,
        completed_at: datetime | None = None,
    ) -> UploadSessionRecord:
        row = await self._fetch_session(upload_id)
        if row is None:
            raise DatabaseError(f"upload {upload_id} vanished", "update")
        for field_name, url in (urls or {}).items():
            setattr(row, field_name, url)
        if upload_status is not None:
            row.upload_status = upload_status.value
        if processing_status is not None:
            row.processing_status = processing_status.value
        if parsed_data is not None:
            row.parsed_data = parsed_data
        if completed_at is not None:
            row.completed_at = completed_at
        await self.db.commit()
        await self.db.refresh(row)
        return self._session_record(row)

    async def transition_session(
        self, upload_id: UUID, expected: UploadStatus, *,
        upload_status: UploadStatus,
        processing_status: ProcessingStatus,
        parsed_data: dict | None = None,
        completed_at: datetime | None = None,
    ) -> bool:
        """Move the session only while it is still in `expected`. False when it was not."""
        values = {
            "upload_status": upload_status.value,
            "processing_status": processing_status.value,
        }
        if parsed_data is not None:
            values["parsed_data"] = parsed_data
        if completed_at is not None:
            values["completed_at"] = completed_at
        moved = await self.db.execute(
            update(self.session_model)
            .where(self.session_model.id == upload_id)
            .where(self.session_model.upload_status == expected.value)
            .values(**values)
        )
        if moved.rowcount != 1:
            await self.db.rollback()
            return False
        await self.db.commit()
        return True

    async def complete_session(
        self, upload_id: UUID, token_id: UUID, now: datetime,
    ) -> bool:
        """Close the session and consume the token. False when either was already closed."""
        closed = await self.db.execute(
            update(self.session_model)
            .where(self.session_model.id == upload_id)
            .where(self.session_model.upload_status != UploadStatus.MANUALLY_COMPLETED.value)
            .values(
                upload_status=UploadStatus.MANUALLY_COMPLETED.value,
                processing_status=ProcessingStatus.COMPLETED.value,
                completed_at=now,
            )
        )
        if closed.rowcount != 1:
            await self.db.rollback()
            return False
        consumed = await self.db.execute(
            update(self.token_model)
            .where(self.token_model.id == token_id)
            .where(self.token_model.used_at.is_(None))
            .values(used_at=now)
        )
        if consumed.rowcount != 1:
            await self.db.rollback()
            return False
        await self.db.commit()
        return True

    # ─── Scan audit ─────────────────────────────────────────────

    async def record_scan(self, scan: dict) -> None:
        self.db.add(self.scan_model(**scan))
        await self.db.commit()
