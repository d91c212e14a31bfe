"""Upload Credential Rejection — every invalid credential is a uniform 401.

Invariants:
    - Tampered, expired, wrong-flow, unknown-token, mismatched and used credentials → 401
    - The body is always {"error": "Invalid or expired token", "code": "INVALID_UPLOAD_TOKEN"}
    - The rejection reason is logged (fail_reason) and never returned
    - Used tokens are refused for upload but still answer status polling
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

from fleetdesk.core.domain_types import UploadFlow
from fleetdesk.infrastructure.credential_signer import JoseCredentialSigner

REJECTED = {"error": "Invalid or expired token", "code": "INVALID_UPLOAD_TOKEN"}


async def _car_upload(client, credential, document_type="insurance"):
    return await client.post(
        "/api/mobile-upload-car",
        data={"token": credential, "documentType": document_type},
        files={"file": ("paper.jpg", b"car-paper", "image/jpeg")},
    )


async def _client_upload(client, credential, document_type="id_front"):
    return await client.post(
        "/api/mobile-upload",
        data={"token": credential, "documentType": document_type},
        files={"file": ("id.jpg", b"id-image", "image/jpeg")},
    )


def _reasons(caplog) -> list[str]:
    return [r.fail_reason for r in caplog.records if hasattr(r, "fail_reason")]


# ─── Signature and expiry ───────────────────────────────────────


async def test_tampered_credential_rejected(client, seed_car, seed_token, caplog):
    _, credential = await seed_token("car", seed_car.id)

    res = await _car_upload(client, credential[:-4] + "AAAA")

    assert res.status_code == 401
    assert res.json() == REJECTED
    assert "invalid_signature" in _reasons(caplog)


async def test_credential_signed_with_other_secret_rejected(client, seed_car, seed_token):
    token, _ = await seed_token("car", seed_car.id)
    forged = JoseCredentialSigner("not-the-secret").issue(
        UploadFlow.CAR, "carId", seed_car.id, token.id,
    )

    res = await _car_upload(client, forged)

    assert res.status_code == 401
    assert res.json() == REJECTED


async def test_expired_credential_rejected(client, seed_car, seed_token, caplog):
    issued_at = datetime.now(timezone.utc) - timedelta(minutes=10)
    _, credential = await seed_token("car", seed_car.id, issued_at=issued_at)

    res = await _car_upload(client, credential)

    assert res.status_code == 401
    assert res.json() == REJECTED
    assert "credential_expired" in _reasons(caplog)


async def test_expired_token_row_rejected_even_with_live_credential(client, seed_car, seed_token, caplog):
    _, credential = await seed_token("car", seed_car.id, expires_in=-5)

    res = await _car_upload(client, credential)

    assert res.status_code == 401
    assert "token_expired" in _reasons(caplog)


async def test_expired_token_row_rejected_for_status(client, seed_car, seed_token):
    _, credential = await seed_token("car", seed_car.id, expires_in=-5)

    res = await client.get("/api/mobile-upload-car/status", params={"token": credential})

    assert res.status_code == 401


# ─── Flow isolation ─────────────────────────────────────────────


async def test_client_credential_rejected_by_car_upload(client, seed_client, seed_token, caplog):
    _, credential = await seed_token("client", seed_client.id)

    res = await _car_upload(client, credential)

    assert res.status_code == 401
    assert res.json() == REJECTED
    assert "wrong_flow" in _reasons(caplog)


async def test_car_credential_rejected_by_client_upload(client, seed_car, seed_token):
    _, credential = await seed_token("car", seed_car.id)

    res = await _client_upload(client, credential)

    assert res.status_code == 401


async def test_car_credential_rejected_by_client_status_and_complete(client, seed_car, seed_token):
    _, credential = await seed_token("car", seed_car.id)

    status = await client.get("/api/mobile-upload/status", params={"token": credential})
    complete = await client.post("/api/mobile-upload/complete", json={"token": credential})

    assert status.status_code == 401
    assert complete.status_code == 401


# ─── Token row checks ───────────────────────────────────────────


async def test_unknown_token_id_rejected(client, seed_car, signer, caplog):
    credential = signer.issue(UploadFlow.CAR, "carId", seed_car.id, uuid4())

    res = await _car_upload(client, credential)

    assert res.status_code == 401
    assert "token_not_found" in _reasons(caplog)


async def test_credential_for_other_entity_rejected(client, seed_car, seed_token, caplog):
    _, credential = await seed_token("car", seed_car.id, credential_entity_id=uuid4())

    res = await _car_upload(client, credential)

    assert res.status_code == 401
    assert "entity_mismatch" in _reasons(caplog)


async def test_used_token_rejected_for_upload(client, seed_car, seed_token, caplog):
    _, credential = await seed_token("car", seed_car.id, used=True)

    res = await _car_upload(client, credential)

    assert res.status_code == 401
    assert "token_used" in _reasons(caplog)


async def test_used_token_still_answers_status(client, seed_car, seed_token):
    _, credential = await seed_token("car", seed_car.id, used=True)

    res = await client.get("/api/mobile-upload-car/status", params={"token": credential})

    assert res.status_code == 200
    assert res.json()["status"] == "pending"
