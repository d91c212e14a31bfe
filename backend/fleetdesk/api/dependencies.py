"""Dependency Providers — FastAPI Depends factories for every injected handle.

Invariants:
    - Handles needing configuration raise ConfigurationError (500) when the request
      reaches them, never at import or startup
    - Repositories built per request share the request's AsyncSession (get_db is cached
      per request by FastAPI)

Design Decisions:
    - Tests override get_object_storage_dep / get_document_parser / get_signer through
      app.dependency_overrides, the same mechanism the app uses for get_db
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from fleetdesk.config import Settings, get_settings
from fleetdesk.core.domain_types import EntityKind
from fleetdesk.core.repository_protocols import (
    CredentialSigner, DocumentParser, ObjectStorage,
)
from fleetdesk.infrastructure.credential_signer import JoseCredentialSigner
from fleetdesk.infrastructure.database import get_db
from fleetdesk.infrastructure.document_ai_client import DocumentAIClient
from fleetdesk.infrastructure.object_storage import get_object_storage
from fleetdesk.infrastructure.repositories import (
    SqlCarRepository, SqlClientRepository, SqlUploadRepository,
)


def get_object_storage_dep(settings: Settings = Depends(get_settings)) -> ObjectStorage:
    return get_object_storage(settings)


def get_document_parser(settings: Settings = Depends(get_settings)) -> DocumentParser:
    return DocumentAIClient(settings)


def get_signer(settings: Settings = Depends(get_settings)) -> CredentialSigner:
    settings.require("upload_token_secret")
    return JoseCredentialSigner(
        settings.upload_token_secret, settings.upload_credential_ttl_seconds,
    )


def get_client_repository(db: AsyncSession = Depends(get_db)) -> SqlClientRepository:
    return SqlClientRepository(db)


def get_car_repository(db: AsyncSession = Depends(get_db)) -> SqlCarRepository:
    return SqlCarRepository(db)


def get_client_uploads(db: AsyncSession = Depends(get_db)) -> SqlUploadRepository:
    return SqlUploadRepository(db, EntityKind.CLIENT)


def get_car_uploads(db: AsyncSession = Depends(get_db)) -> SqlUploadRepository:
    return SqlUploadRepository(db, EntityKind.CAR)


def upload_base_url(request: Request, settings: Settings = Depends(get_settings)) -> str:
    """APP_BASE_URL when set, else the origin the request came in on."""
    return settings.app_base_url or str(request.base_url)


def get_optional_document_parser(
    settings: Settings = Depends(get_settings),
) -> DocumentParser | None:
    """Parser for background OCR; None when Document AI is not configured."""
    if not settings.document_ai_configured:
        return None
    return DocumentAIClient(settings)
