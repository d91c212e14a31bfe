"""Upload Credential Checks — discriminator, claim parsing and token row rules.

Tests:
    - Wrong discriminator → WRONG_FLOW, in both directions
    - Missing or malformed ids → INVALID_SIGNATURE
    - Row checks in order: not found, entity mismatch, used, expired
    - allow_used lets status polling through a consumed token
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from fleetdesk.core.errors import TokenRejection, UploadTokenError
from fleetdesk.core.upload_credentials import (
    UploadClaims, as_utc, check_token_row, claims_from_payload,
)
from fleetdesk.core.upload_documents import CAR_FLOW, CLIENT_FLOW
from fleetdesk.core.upload_records import UploadTokenRecord

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _rejection(fn, *args, **kwargs) -> TokenRejection:
    with pytest.raises(UploadTokenError) as exc:
        fn(*args, **kwargs)
    return exc.value.reason


def _row(entity_id, expires_in=300, used=False) -> UploadTokenRecord:
    return UploadTokenRecord(
        id=uuid4(), entity_id=entity_id, token="t",
        expires_at=NOW + timedelta(seconds=expires_in),
        used_at=NOW if used else None,
    )


# ─── claims_from_payload ────────────────────────────────────────


def test_client_payload_parsed():
    entity_id, token_id = uuid4(), uuid4()
    payload = {"type": "qr_upload", "clientId": str(entity_id), "qrTokenId": str(token_id)}

    claims = claims_from_payload(payload, CLIENT_FLOW)

    assert claims == UploadClaims(CLIENT_FLOW.flow, entity_id, token_id)


def test_client_payload_rejected_by_car_flow():
    payload = {"type": "qr_upload", "clientId": str(uuid4()), "qrTokenId": str(uuid4())}

    assert _rejection(claims_from_payload, payload, CAR_FLOW) is TokenRejection.WRONG_FLOW


def test_car_payload_rejected_by_client_flow():
    payload = {"type": "car_qr_upload", "carId": str(uuid4()), "qrTokenId": str(uuid4())}

    assert _rejection(claims_from_payload, payload, CLIENT_FLOW) is TokenRejection.WRONG_FLOW


def test_payload_without_type_rejected():
    payload = {"carId": str(uuid4()), "qrTokenId": str(uuid4())}

    assert _rejection(claims_from_payload, payload, CAR_FLOW) is TokenRejection.WRONG_FLOW


@pytest.mark.parametrize("payload", [
    {"type": "car_qr_upload", "qrTokenId": "0b6f1f5e-6f55-4e55-9a83-0a5c3bfa4a11"},
    {"type": "car_qr_upload", "carId": "not-a-uuid", "qrTokenId": "0b6f1f5e-6f55-4e55-9a83-0a5c3bfa4a11"},
    {"type": "car_qr_upload", "carId": "0b6f1f5e-6f55-4e55-9a83-0a5c3bfa4a11"},
])
def test_malformed_ids_rejected(payload):
    assert _rejection(claims_from_payload, payload, CAR_FLOW) is TokenRejection.INVALID_SIGNATURE


# ─── check_token_row ────────────────────────────────────────────


def _claims(entity_id, row=None):
    return UploadClaims(CAR_FLOW.flow, entity_id, row.id if row else uuid4())


def test_valid_row_returned():
    entity_id = uuid4()
    row = _row(entity_id)

    assert check_token_row(row, _claims(entity_id, row), NOW) is row


def test_missing_row():
    assert _rejection(check_token_row, None, _claims(uuid4()), NOW) is TokenRejection.TOKEN_NOT_FOUND


def test_entity_mismatch():
    row = _row(uuid4())

    assert _rejection(check_token_row, row, _claims(uuid4(), row), NOW) is TokenRejection.ENTITY_MISMATCH


def test_used_row_rejected():
    entity_id = uuid4()
    row = _row(entity_id, used=True)

    assert _rejection(check_token_row, row, _claims(entity_id, row), NOW) is TokenRejection.TOKEN_USED


def test_used_row_allowed_for_polling():
    entity_id = uuid4()
    row = _row(entity_id, used=True)

    assert check_token_row(row, _claims(entity_id, row), NOW, allow_used=True) is row


def test_expired_row_rejected():
    entity_id = uuid4()
    row = _row(entity_id, expires_in=-1)

    assert _rejection(check_token_row, row, _claims(entity_id, row), NOW) is TokenRejection.TOKEN_EXPIRED


def test_expired_row_rejected_even_when_used_allowed():
    entity_id = uuid4()
    row = _row(entity_id, expires_in=-1, used=True)

    reason = _rejection(check_token_row, row, _claims(entity_id, row), NOW, allow_used=True)
    assert reason is TokenRejection.TOKEN_EXPIRED


def test_used_checked_before_expiry():
    entity_id = uuid4()
    row = _row(entity_id, expires_in=-1, used=True)

    assert _rejection(check_token_row, row, _claims(entity_id, row), NOW) is TokenRejection.TOKEN_USED


def test_naive_expiry_treated_as_utc():
    entity_id = uuid4()
    row = UploadTokenRecord(
        id=uuid4(), entity_id=entity_id, token="t",
        expires_at=(NOW + timedelta(seconds=30)).replace(tzinfo=None),
    )

    assert check_token_row(row, _claims(entity_id, row), NOW) is row


def test_as_utc_keeps_aware_values():
    assert as_utc(NOW) is NOW
