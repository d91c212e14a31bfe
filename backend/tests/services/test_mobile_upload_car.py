"""Car Mobile Upload — phone uploads of car papers under a car QR token.

Invariants:
    - Each upload lands at {uploadId}/{documentType}_{epoch_ms}{ext} in the car bucket
    - The car row gets the URL in its matching column (inspection → technical_inspection_url)
    - carte_grise + insurance + inspection, in any order, make the session ready_for_completion
    - rental_agreement / other never affect readiness
    - Document type is validated before the token (400, not 401)
    - A scan-audit row is written for every accepted file
"""

import re

import pytest
from sqlalchemy import select

from fleetdesk.models.car import Car
from fleetdesk.models.document_scan import CarDocumentScan
from fleetdesk.models.upload_session import CarUpload

UPLOAD = "/api/mobile-upload-car"


async def _upload(client, credential, document_type, name="paper.jpg", content=b"car-paper"):
    return await client.post(
        UPLOAD,
        data={"token": credential, "documentType": document_type},
        files={"file": (name, content, "image/jpeg")},
    )


async def _status(client, credential):
    return (await client.get(f"{UPLOAD}/status", params={"token": credential})).json()


# ─── Ingestion ──────────────────────────────────────────────────


async def test_upload_stores_file_and_returns_url(client, seed_car, seed_token, storage):
    _, credential = await seed_token("car", seed_car.id)

    res = await _upload(client, credential, "carte_grise", name="Scan.PNG")

    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["documentType"] == "carte_grise"
    assert re.fullmatch(
        rf"http://storage\.test/car-documents/{body['uploadId']}/carte_grise_\d+\.png",
        body["url"],
    )
    assert len(storage.objects) == 1


async def test_upload_writes_car_column(client, seed_car, seed_token, test_session_factory):
    _, credential = await seed_token("car", seed_car.id)

    res = await _upload(client, credential, "inspection")

    async with test_session_factory() as db:
        car = (await db.execute(select(Car).where(Car.id == seed_car.id))).scalar_one()
    assert car.technical_inspection_url == res.json()["url"]


async def test_uploads_under_one_token_share_a_session(client, seed_car, seed_token, test_session_factory):
    _, credential = await seed_token("car", seed_car.id)

    first = await _upload(client, credential, "carte_grise")
    second = await _upload(client, credential, "insurance")

    assert first.json()["uploadId"] == second.json()["uploadId"]
    async with test_session_factory() as db:
        rows = (await db.execute(select(CarUpload))).scalars().all()
    assert len(rows) == 1


async def test_reupload_replaces_slot_url(client, seed_car, seed_token):
    _, credential = await seed_token("car", seed_car.id)

    await _upload(client, credential, "insurance", name="a.jpg")
    second = await _upload(client, credential, "insurance", name="b.pdf")

    status = await _status(client, credential)
    assert status["urls"]["insurance"] == second.json()["url"]
    assert status["urls"]["insurance"].endswith(".pdf")


async def test_upload_records_scan_audit_row(client, seed_car, seed_token, test_session_factory):
    token, credential = await seed_token("car", seed_car.id)

    res = await _upload(client, credential, "rental_agreement", content=b"12345")

    async with test_session_factory() as db:
        scans = (await db.execute(select(CarDocumentScan))).scalars().all()
    assert len(scans) == 1
    assert scans[0].entity_id == seed_car.id
    assert scans[0].qr_token_id == token.id
    assert scans[0].document_type == "rental_agreement"
    assert scans[0].public_url == res.json()["url"]
    assert scans[0].size_bytes == 5


# ─── Readiness ──────────────────────────────────────────────────


async def test_first_upload_moves_session_to_uploading(client, seed_car, seed_token):
    _, credential = await seed_token("car", seed_car.id)

    await _upload(client, credential, "insurance")

    status = await _status(client, credential)
    assert status["status"] == "uploading"
    assert status["documents"] == {
        "carteGrise": False, "insurance": True, "inspection": False,
        "rentalAgreement": False, "other": False,
    }


@pytest.mark.parametrize("order", [
    ("carte_grise", "insurance", "inspection"),
    ("inspection", "carte_grise", "insurance"),
    ("insurance", "inspection", "carte_grise"),
])
async def test_core_documents_in_any_order_make_session_ready(client, seed_car, seed_token, order):
    _, credential = await seed_token("car", seed_car.id)

    for document_type in order[:2]:
        await _upload(client, credential, document_type)
    assert (await _status(client, credential))["status"] == "uploading"

    await _upload(client, credential, order[2])

    status = await _status(client, credential)
    assert status["status"] == "ready_for_completion"
    assert status["uploadStatus"] == "ready_for_completion"
    assert status["processingStatus"] == "ready"


async def test_optional_documents_do_not_make_session_ready(client, seed_car, seed_token):
    _, credential = await seed_token("car", seed_car.id)

    await _upload(client, credential, "rental_agreement")
    await _upload(client, credential, "other")
    await _upload(client, credential, "carte_grise")

    assert (await _status(client, credential))["status"] == "uploading"


async def test_status_without_uploads_is_pending(client, seed_car, seed_token):
    _, credential = await seed_token("car", seed_car.id)

    status = await _status(client, credential)

    assert status["status"] == "pending"
    assert not any(status["documents"].values())
    assert status["completedAt"] is None


# ─── Request validation ─────────────────────────────────────────


async def test_unknown_document_type_is_400(client, seed_car, seed_token):
    _, credential = await seed_token("car", seed_car.id)

    res = await _upload(client, credential, "id_front")

    assert res.status_code == 400
    assert res.json() == {"error": "Invalid document type", "code": "INVALID_DOCUMENT_TYPE"}


async def test_document_type_checked_before_token(client):
    res = await _upload(client, "garbage-token", "passport")

    assert res.status_code == 400


async def test_missing_file_is_400(client, seed_car, seed_token):
    _, credential = await seed_token("car", seed_car.id)

    res = await client.post(UPLOAD, data={"token": credential, "documentType": "insurance"})

    assert res.status_code == 400
    assert res.json()["error"] == "File, token, and document type are required"


async def test_status_without_token_is_400(client):
    res = await client.get(f"{UPLOAD}/status")

    assert res.status_code == 400
    assert res.json()["error"] == "Token is required"
