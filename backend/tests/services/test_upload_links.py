"""Upload Link Issuance — QR generation for client and car flows.

Invariants:
    - Response carries qrTokenId, a PNG data URL, the upload URL and the row expiry
    - Credential `type` is the flow discriminator; exp is shorter than the row expiry
    - Unknown client ids get a placeholder client (pre-filled from parsed uploads)
    - Unknown car ids are a 404
    - Missing UPLOAD_TOKEN_SECRET is a 500 CONFIGURATION_ERROR
"""

from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, urlparse
from uuid import uuid4

from sqlalchemy import select

from fleetdesk.api.dependencies import get_signer
from fleetdesk.config import Settings, get_settings
from fleetdesk.main import app
from fleetdesk.models.client import Client
from fleetdesk.models.upload_session import ClientUpload
from fleetdesk.models.upload_token import ClientUploadToken


def _credential(upload_url: str) -> str:
    return parse_qs(urlparse(upload_url).query)["token"][0]


# ─── Client links ───────────────────────────────────────────────


async def test_generate_client_link_returns_qr_and_url(client, seed_client):
    res = await client.post("/api/qr/generate", json={"clientId": str(seed_client.id)})

    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["qrCodeDataUrl"].startswith("data:image/png;base64,")
    assert body["uploadUrl"].startswith("http://test/mobile-upload?token=")


async def test_client_credential_carries_discriminator_and_ids(client, seed_client, signer):
    res = await client.post("/api/qr/generate", json={"clientId": str(seed_client.id)})
    body = res.json()

    claims = signer.decode(_credential(body["uploadUrl"]))
    assert claims["type"] == "qr_upload"
    assert claims["clientId"] == str(seed_client.id)
    assert claims["qrTokenId"] == body["qrTokenId"]
    assert claims["exp"] - claims["iat"] == 240


async def test_token_row_expires_five_minutes_after_issue(client, seed_client):
    before = datetime.now(timezone.utc)
    res = await client.post("/api/qr/generate", json={"clientId": str(seed_client.id)})

    expires_at = datetime.fromisoformat(res.json()["expiresAt"])
    assert timedelta(seconds=295) <= expires_at - before <= timedelta(seconds=305)


async def test_generate_for_unknown_client_creates_placeholder(client, test_session_factory):
    client_id = uuid4()
    res = await client.post("/api/qr/generate", json={"clientId": str(client_id)})

    assert res.status_code == 200
    async with test_session_factory() as db:
        row = (await db.execute(select(Client).where(Client.id == client_id))).scalar_one()
    assert row.first_name == "New Client"
    assert row.status == "active"


async def test_placeholder_client_prefilled_from_parsed_upload(client, test_db, test_session_factory):
    client_id = uuid4()
    test_db.add(ClientUpload(
        entity_id=client_id,
        qr_token_id=uuid4(),
        parsed_data={
            "firstName": "Youssef", "lastName": "Alaoui",
            "gender": "M", "idNumber": "AB123456", "dateOfBirth": "14/03/1990",
        },
    ))
    await test_db.commit()

    res = await client.post("/api/qr/generate", json={"clientId": str(client_id)})

    assert res.status_code == 200
    async with test_session_factory() as db:
        row = (await db.execute(select(Client).where(Client.id == client_id))).scalar_one()
    assert row.first_name == "Youssef"
    assert row.last_name == "Alaoui"
    assert row.gender == "m"
    assert row.id_number == "AB123456"
    assert row.date_of_birth.isoformat() == "1990-03-14"


async def test_each_issue_creates_a_new_token(client, seed_client, test_session_factory):
    for _ in range(3):
        await client.post("/api/qr/generate", json={"clientId": str(seed_client.id)})

    async with test_session_factory() as db:
        rows = (await db.execute(
            select(ClientUploadToken).where(ClientUploadToken.entity_id == seed_client.id),
        )).scalars().all()
    assert len(rows) == 3
    assert len({r.token for r in rows}) == 3


async def test_list_client_tokens(client, seed_client):
    issued = (await client.post(
        "/api/qr/generate", json={"clientId": str(seed_client.id)},
    )).json()

    res = await client.get("/api/qr/generate", params={"clientId": str(seed_client.id)})

    assert res.status_code == 200
    tokens = res.json()["tokens"]
    assert [t["id"] for t in tokens] == [issued["qrTokenId"]]
    assert tokens[0]["clientId"] == str(seed_client.id)
    assert tokens[0]["usedAt"] is None


async def test_generate_rejects_malformed_client_id(client):
    res = await client.post("/api/qr/generate", json={"clientId": "not-a-uuid"})

    assert res.status_code == 400
    assert res.json()["code"] == "VALIDATION_ERROR"


# ─── Car links ──────────────────────────────────────────────────


async def test_generate_car_link(client, seed_car, signer):
    res = await client.post("/api/qr/generate-car", json={"carId": str(seed_car.id)})

    assert res.status_code == 200
    body = res.json()
    assert body["uploadUrl"].startswith("http://test/car-upload?token=")
    claims = signer.decode(_credential(body["uploadUrl"]))
    assert claims["type"] == "car_qr_upload"
    assert claims["carId"] == str(seed_car.id)


async def test_generate_for_unknown_car_is_404(client):
    res = await client.post("/api/qr/generate-car", json={"carId": str(uuid4())})

    assert res.status_code == 404
    assert res.json() == {"error": "Car not found", "code": "RESOURCE_NOT_FOUND"}


# ─── Configuration ──────────────────────────────────────────────


async def test_missing_signing_secret_is_configuration_error(client, seed_client):
    app.dependency_overrides.pop(get_signer)
    app.dependency_overrides[get_settings] = lambda: Settings(upload_token_secret=None)

    res = await client.post("/api/qr/generate", json={"clientId": str(seed_client.id)})

    assert res.status_code == 500
    assert res.json()["code"] == "CONFIGURATION_ERROR"
    assert "UPLOAD_TOKEN_SECRET" in res.json()["error"]
