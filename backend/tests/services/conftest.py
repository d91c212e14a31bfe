"""Service test fixtures — async DB, fake adapters and the FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use test DB session
    - db_manager patched for background tasks (scan audit, client OCR) that bypass get_db
    - Storage, signer and Document AI are replaced through app.dependency_overrides

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for route tests
      (PostgreSQL-specific features not exercised here)
    - Real JoseCredentialSigner with a test secret: tests mint expired or wrong-flow
      credentials exactly as an attacker or a stale phone would present them
    - Document AI is off by default (optional parser returns None); OCR tests set `parser.enabled`
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from fleetdesk.api.dependencies import (
    get_document_parser, get_object_storage_dep,
    get_optional_document_parser, get_signer,
)
from fleetdesk.core.upload_documents import CAR_FLOW, CLIENT_FLOW
from fleetdesk.db.base import Base
from fleetdesk.infrastructure.credential_signer import JoseCredentialSigner
from fleetdesk.infrastructure.database import get_db, DatabaseSessionManager
from fleetdesk.models.car import Car
from fleetdesk.models.client import Client
from fleetdesk.models.upload_token import CarUploadToken, ClientUploadToken
import fleetdesk.infrastructure.database as db_module
from fleetdesk.main import app


class FakeStorage:
    """In-memory ObjectStorage keyed by (bucket, key)."""

    def __init__(self):
        self.objects: dict[tuple[str, str], bytes] = {}
        self.content_types: dict[tuple[str, str], str | None] = {}

    async def upload(self, bucket, key, data, content_type):
        self.objects[(bucket, key)] = data
        self.content_types[(bucket, key)] = content_type

    async def download(self, bucket, key):
        return self.objects[(bucket, key)]

    def public_url(self, bucket, key):
        return f"http://storage.test/{bucket}/{key}"

    def key_from_url(self, bucket, url):
        prefix = f"http://storage.test/{bucket}/"
        if not url.startswith(prefix):
            return None
        return url[len(prefix):] or None


class FakeDocumentParser:
    """DocumentParser returning canned Document AI output.

    `responses` maps a marker found in the uploaded bytes to the result dict, or to
    an exception to raise for that image; `calls` records (content, mime_type,
    processor_id) per call; setting `error` makes every call raise it.
    """

    def __init__(self):
        self.enabled = False
        self.calls: list[tuple[bytes, str, str | None]] = []
        self.responses: dict[bytes, dict] = {}
        self.default = {"text": "", "entities": []}
        self.error: Exception | None = None

    async def process(self, content, mime_type, processor_id):
        self.calls.append((content, mime_type, processor_id))
        if self.error is not None:
            raise self.error
        for marker, result in self.responses.items():
            if marker in content:
                if isinstance(result, Exception):
                    raise result
                return result
        return self.default


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def parser():
    return FakeDocumentParser()


@pytest.fixture
def signer():
    return JoseCredentialSigner("test-upload-secret", ttl_seconds=240)


@pytest.fixture
async def client(test_engine, test_session_factory, storage, parser, signer):
    """FastAPI test client with DB and external adapters overridden."""
    # Override get_db for route-level dependency injection
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_object_storage_dep] = lambda: storage
    app.dependency_overrides[get_document_parser] = lambda: parser
    app.dependency_overrides[get_optional_document_parser] = (
        lambda: parser if parser.enabled else None
    )
    app.dependency_overrides[get_signer] = lambda: signer

    # Patch db_manager for background tasks that use it directly
    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


# ─── Seed helpers ────────────────────────────────────────────────

@pytest.fixture
async def seed_client(test_db):
    """Insert a client directly into the test DB."""
    row = Client(first_name="Amina", last_name="Benali", email="amina@example.com")
    test_db.add(row)
    await test_db.commit()
    await test_db.refresh(row)
    return row


@pytest.fixture
async def seed_car(test_db):
    """Insert a car directly into the test DB."""
    row = Car(brand="Dacia", model="Logan", plate_number="12345-A-6")
    test_db.add(row)
    await test_db.commit()
    await test_db.refresh(row)
    return row


@pytest.fixture
def seed_token(test_db, signer):
    """Factory: insert a token row and return (row, credential).

    Kwargs:
        kind: "client" | "car"
        entity_id: owner of the row
        expires_in: seconds until the row expires (negative = already expired)
        used: mark the row used
        issued_at: credential iat (credential expires 240 s later)
        credential_entity_id: entity claim to sign, defaults to entity_id
    """
    async def _seed(
        kind, entity_id, expires_in=300, used=False, issued_at=None,
        credential_entity_id=None,
    ):
        now = datetime.now(timezone.utc)
        model = ClientUploadToken if kind == "client" else CarUploadToken
        row = model(
            entity_id=entity_id,
            token=uuid4().hex,
            expires_at=now + timedelta(seconds=expires_in),
            used_at=now if used else None,
        )
        test_db.add(row)
        await test_db.commit()
        await test_db.refresh(row)
        profile = CLIENT_FLOW if kind == "client" else CAR_FLOW
        credential = signer.issue(
            profile.flow, profile.entity_claim,
            credential_entity_id or entity_id, row.id, now=issued_at,
        )
        return row, credential

    return _seed

