"""Credential Signer — HS256 upload credentials via python-jose.

Invariants:
    - Every credential carries the entity claim, qrTokenId and the flow discriminator `type`
    - Credential lifetime (exp) is shorter than the token row lifetime
    - Decode failures map to UploadTokenError: expired -> CREDENTIAL_EXPIRED,
      anything else -> INVALID_SIGNATURE
"""

import logging
from datetime import datetime, timedelta, timezone
from uuid import UUID

from jose import ExpiredSignatureError, JWTError, jwt

from fleetdesk.core.domain_types import UploadFlow
from fleetdesk.core.errors import TokenRejection, UploadTokenError

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


class JoseCredentialSigner:
    """Signs and decodes upload credentials with a shared secret."""

    def __init__(self, secret: str, ttl_seconds: int = 240):
        self.secret = secret
        self.ttl = timedelta(seconds=ttl_seconds)

    def issue(
        self, flow: UploadFlow, claim: str, entity_id: UUID, token_id: UUID,
        now: datetime | None = None,
    ) -> str:
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            claim: str(entity_id),
            "qrTokenId": str(token_id),
            "type": flow.value,
            "iat": issued_at,
            "exp": issued_at + self.ttl,
        }
        return jwt.encode(payload, self.secret, algorithm=ALGORITHM)

    def decode(self, credential: str) -> dict:
        try:
            return jwt.decode(credential, self.secret, algorithms=[ALGORITHM])
        except ExpiredSignatureError:
            raise UploadTokenError(TokenRejection.CREDENTIAL_EXPIRED)
        except JWTError as e:
            logger.debug(f"Credential rejected: {e}")
            raise UploadTokenError(TokenRejection.INVALID_SIGNATURE)
