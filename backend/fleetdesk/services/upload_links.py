"""Upload Link Issuance — token row + signed credential + QR code for one entity.

Invariants:
    - Token row expires TOKEN_TTL after issuance; the credential expires earlier
    - The credential's `type` claim is the discriminator of the flow profile
    - Unknown client ids get a placeholder client; unknown car ids are a 404
    - Issuance has no rate limit and no per-entity cap

Design Decisions:
    - Placeholder clients are pre-filled from the newest parsed upload data for that id,
      so a QR flow started before the client form was saved still lands on a named row
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from urllib.parse import quote
from uuid import UUID

from fleetdesk.core.client_fields import placeholder_fields
from fleetdesk.core.domain_types import EntityKind
from fleetdesk.core.errors import ResourceNotFoundError
from fleetdesk.core.repository_protocols import CredentialSigner, UploadRepository
from fleetdesk.core.upload_documents import UploadFlowProfile
from fleetdesk.infrastructure.qr_codes import qr_data_url

logger = logging.getLogger(__name__)


class UploadLinkService:
    """Issues and lists QR upload links for one flow."""

    def __init__(
        self,
        profile: UploadFlowProfile,
        uploads: UploadRepository,
        entities,
        signer: CredentialSigner,
        token_ttl_seconds: int = 300,
    ):
        self.profile = profile
        self.uploads = uploads
        self.entities = entities
        self.signer = signer
        self.token_ttl = timedelta(seconds=token_ttl_seconds)

    async def _ensure_entity(self, entity_id: UUID) -> None:
        if await self.entities.get(entity_id):
            return
        if self.profile.kind is not EntityKind.CLIENT:
            raise ResourceNotFoundError("Car", str(entity_id))
        parsed = await self.uploads.latest_parsed_data(entity_id)
        fields = placeholder_fields(parsed)
        await self.entities.create(fields, client_id=entity_id)
        logger.info(
            f"Created placeholder client {fields['first_name']!r}",
            extra={"entity_id": entity_id},
        )

    async def issue(
        self, entity_id: UUID, base_url: str, now: datetime | None = None,
    ) -> dict:
        now = now or datetime.now(timezone.utc)
        await self._ensure_entity(entity_id)

        token = await self.uploads.create_token(
            entity_id, secrets.token_urlsafe(32), now + self.token_ttl,
        )
        credential = self.signer.issue(
            self.profile.flow, self.profile.entity_claim, entity_id, token.id,
        )
        upload_url = (
            f"{base_url.rstrip('/')}{self.profile.upload_path}"
            f"?token={quote(credential, safe='')}"
        )
        logger.info(
            "Issued upload link",
            extra={"entity_id": entity_id, "flow": self.profile.flow.value},
        )
        return {
            "success": True,
            "qrTokenId": str(token.id),
            "qrCodeDataUrl": qr_data_url(upload_url),
            "uploadUrl": upload_url,
            "expiresAt": token.expires_at.isoformat(),
        }

    async def list_tokens(self, entity_id: UUID) -> dict:
        tokens = await self.uploads.list_tokens(entity_id)
        return {
            "success": True,
            "tokens": [
                {
                    "id": str(t.id),
                    self.profile.entity_claim: str(t.entity_id),
                    "token": t.token,
                    "expiresAt": t.expires_at.isoformat(),
                    "usedAt": t.used_at.isoformat() if t.used_at else None,
                    "createdAt": t.created_at.isoformat() if t.created_at else None,
                }
                for t in tokens
            ],
        }
