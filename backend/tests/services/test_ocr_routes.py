"""OCR Routes — single-image extraction and stored front/back pair processing.

Invariants:
    - Oversized or unsupported files are refused with 400 before Document AI is called
    - Auto mode runs a quick pass, detects type and side, then processes once more
    - Explicit type and side skip the quick pass
    - Pair processing: front assigns, back only fills blanks; unreadable sides are skipped
"""

from fleetdesk.core.ocr_fields import MAX_FILE_SIZE

OCR = "/api/ocr/process"


def _entity(entity_type: str, text: str, confidence: float = 0.9) -> dict:
    return {"type": entity_type, "mentionText": text, "confidence": confidence}


async def test_explicit_type_makes_one_call(client, parser):
    parser.default = {"text": "PERMIS DE CONDUIRE", "entities": [
        _entity("license_number", "LN-1", 0.8), _entity("categories", "A B", 0.6),
    ]}

    res = await client.post(
        OCR,
        data={"documentType": "driver_license", "side": "front"},
        files={"file": ("lic.png", b"png-bytes", "image/png")},
    )

    assert res.status_code == 200
    body = res.json()
    data = body["data"]
    assert body["success"] is True
    assert data["documentType"] == "driver_license"
    assert data["side"] == "front"
    assert data["fields"]["licenseNumber"] == "LN-1"
    assert data["fields"]["licenseCategories"] == ["A", "B"]
    assert abs(data["confidence"] - 0.7) < 1e-9
    assert body["processingTime"] == data["processingTime"]
    assert len(parser.calls) == 1


async def test_auto_mode_detects_cin_back(client, parser):
    parser.default = {"text": "Royaume du Maroc - Carte Nationale - Adresse", "entities": [
        _entity("address", "5 Av. Hassan II"),
    ]}

    res = await client.post(OCR, files={"file": ("id.jpg", b"jpeg", "image/jpeg")})

    data = res.json()["data"]
    assert data["documentType"] == "cin"
    assert data["side"] == "back"
    assert data["fields"]["address"] == "5 Av. Hassan II"
    assert len(parser.calls) == 2


async def test_unsupported_mime_type_is_400(client, parser):
    res = await client.post(OCR, files={"file": ("a.tiff", b"tiff", "image/tiff")})

    assert res.status_code == 400
    assert res.json()["error"] == "File type image/tiff is not supported"
    assert parser.calls == []


async def test_oversized_file_is_400(client, parser):
    res = await client.post(
        OCR, files={"file": ("big.jpg", b"0" * (MAX_FILE_SIZE + 1), "image/jpeg")},
    )

    assert res.status_code == 400
    assert "exceeds maximum allowed size of 10MB" in res.json()["error"]
    assert parser.calls == []


async def test_unknown_document_type_is_400(client):
    res = await client.post(
        OCR, data={"documentType": "passport"},
        files={"file": ("a.jpg", b"jpeg", "image/jpeg")},
    )

    assert res.status_code == 400


async def test_missing_file_is_400(client):
    res = await client.post(OCR, data={"documentType": "cin"})

    assert res.status_code == 400
    assert res.json()["error"] == "No file provided"


# ─── Stored pair ────────────────────────────────────────────────


async def test_process_documents_merges_front_and_back(client, parser, storage):
    storage.objects[("client-documents", "u/front.jpg")] = b"FRONT"
    storage.objects[("client-documents", "u/back.jpg")] = b"BACK"
    parser.responses = {
        b"FRONT": {"text": "", "entities": [
            _entity("first_name", "Omar"), _entity("cin", "BE998877"),
        ]},
        b"BACK": {"text": "", "entities": [
            _entity("first_name", "Other"), _entity("address", "Fes"),
        ]},
    }

    res = await client.post("/api/process-documents", json={
        "documentType": "cin",
        "frontImageUrl": "http://storage.test/client-documents/u/front.jpg",
        "backImageUrl": "http://storage.test/client-documents/u/back.jpg",
    })

    assert res.status_code == 200
    data = res.json()["data"]
    assert data["firstName"] == "Omar"
    assert data["idNumber"] == "BE998877"
    assert data["address"] == "Fes"


async def test_process_documents_skips_foreign_url(client, parser, storage):
    storage.objects[("client-documents", "u/front.jpg")] = b"FRONT"
    parser.responses = {b"FRONT": {"text": "", "entities": [_entity("last_name", "Bennani")]}}

    res = await client.post("/api/process-documents", json={
        "documentType": "cin",
        "frontImageUrl": "http://storage.test/client-documents/u/front.jpg",
        "backImageUrl": "https://elsewhere.example/back.jpg",
    })

    assert res.status_code == 200
    assert res.json()["data"]["lastName"] == "Bennani"
    assert len(parser.calls) == 1


async def test_process_documents_requires_urls(client):
    res = await client.post("/api/process-documents", json={"documentType": "cin"})

    assert res.status_code == 400
    assert res.json()["code"] == "VALIDATION_ERROR"
