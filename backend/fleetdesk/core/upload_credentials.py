"""Upload Credential Checks — pure validation of decoded claims and token rows.

Invariants:
    - Discriminator must equal the expected flow (client credentials never open car endpoints)
    - Row checks run in a fixed order: not found -> entity mismatch -> used -> expired
    - Each failure raises UploadTokenError with a distinct TokenRejection
    - Stored expiry is compared against `now`, independent of the JWT exp claim

Design Decisions:
    - Signature verification lives in infrastructure/credential_signer.py (python-jose);
      everything after decoding is pure and tested without keys or clocks
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

from fleetdesk.core.domain_types import UploadFlow
from fleetdesk.core.errors import TokenRejection, UploadTokenError
from fleetdesk.core.upload_documents import UploadFlowProfile
from fleetdesk.core.upload_records import UploadTokenRecord


@dataclass(frozen=True)
class UploadClaims:
    flow: UploadFlow
    entity_id: UUID
    token_id: UUID


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC (SQLite drops tzinfo)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def claims_from_payload(payload: dict, profile: UploadFlowProfile) -> UploadClaims:
    """Validate the discriminator and id claims of a decoded credential."""
    if payload.get("type") != profile.flow.value:
        raise UploadTokenError(TokenRejection.WRONG_FLOW)
    try:
        entity_id = UUID(str(payload[profile.entity_claim]))
        token_id = UUID(str(payload["qrTokenId"]))
    except (KeyError, ValueError):
        raise UploadTokenError(TokenRejection.INVALID_SIGNATURE)
    return UploadClaims(flow=profile.flow, entity_id=entity_id, token_id=token_id)


def check_token_row(
    row: UploadTokenRecord | None,
    claims: UploadClaims,
    now: datetime,
    allow_used: bool = False,
) -> UploadTokenRecord:
    """Confirm the stored token backs the claims. Returns the row on success."""
    if row is None:
        raise UploadTokenError(TokenRejection.TOKEN_NOT_FOUND)
    if row.entity_id != claims.entity_id:
        raise UploadTokenError(TokenRejection.ENTITY_MISMATCH)
    if row.used_at is not None and not allow_used:
        raise UploadTokenError(TokenRejection.TOKEN_USED)
    if as_utc(row.expires_at) < as_utc(now):
        raise UploadTokenError(TokenRejection.TOKEN_EXPIRED)
    return row
