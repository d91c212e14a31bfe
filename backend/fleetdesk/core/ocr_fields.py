"""OCR Field Mapping — document detection and entity-to-field mapping for ID cards and licenses.

Invariants:
    - Detection checks license keywords before CIN keywords; unknown text defaults to cin/front
    - Every entity is kept under its original type AND mapped onto the standard field names
    - Confidence is the mean entity confidence (0.0 when there are no entities)
    - merge_fields(overwrite=False) only fills keys that are missing or empty

Design Decisions:
    - Keyword tables as module constants: detection is a pure function of the quick-pass text
    - Snake_case and camelCase aliases both emitted: the dashboard form reads camelCase,
      the client table columns are snake_case
"""

import re
from typing import Mapping

MAX_FILE_SIZE = 10 * 1024 * 1024
SUPPORTED_MIME_TYPES = frozenset({
    "image/jpeg", "image/jpg", "image/png", "image/gif",
    "image/bmp", "image/webp", "application/pdf",
})

DOCUMENT_TYPES = ("cin", "driver_license")
SIDES = ("front", "back")

_LICENSE_KEYWORDS = ("permis de conduire", "driving license", "categories", "catégories")
_LICENSE_BACK_KEYWORDS = ("restrictions", "limitations", "codes", "observations")
_CIN_KEYWORDS = ("carte nationale", "identité", "royaume du maroc", "cin")
_CIN_BACK_KEYWORDS = ("adresse", "address", "lieu de naissance", "date de délivrance")

# entity type (lower-cased) -> standard field names it populates
_FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "first_name": ("firstName", "first_name"),
    "last_name": ("lastName", "last_name"),
    "first_name_arabic": ("firstNameArabic", "first_name_arabic"),
    "last_name_arabic": ("lastNameArabic", "last_name_arabic"),
    "dateofbirth": ("dateOfBirth", "date_of_birth"),
    "date_of_birth": ("dateOfBirth", "date_of_birth"),
    "expiry_date": ("expiryDate", "expiry_date"),
    "expiration_date": ("expiryDate", "expiry_date"),
    "issue_date": ("issueDate", "issue_date"),
    "date_emission": ("issueDate", "issue_date"),
    "id_number": ("idNumber", "id_number", "cinNumber"),
    "cin": ("idNumber", "id_number", "cinNumber"),
    "document_id": ("idNumber", "id_number", "cinNumber"),
    "license_number": ("licenseNumber", "license_number"),
    "permis": ("licenseNumber", "license_number"),
    "born_in": ("placeOfBirth", "place_of_birth"),
    "place_of_birth": ("placeOfBirth", "place_of_birth"),
    "lieu_naissance": ("placeOfBirth", "place_of_birth"),
    "living_adress": ("address",),
    "address_in_arabic": ("address",),
    "address": ("address",),
    "nationality": ("nationality",),
    "nationalite": ("nationality",),
    "gender": ("gender",),
    "sexe": ("gender",),
}
_LIST_SPLIT = re.compile(r"[,\s]+")


def validate_upload_file(size: int, content_type: str | None) -> str | None:
    """Return an error message for an unusable file, None when acceptable."""
    if size > MAX_FILE_SIZE:
        return (
            f"File size {size / 1024 / 1024:.2f}MB exceeds maximum allowed size "
            f"of {MAX_FILE_SIZE // (1024 * 1024)}MB"
        )
    if content_type not in SUPPORTED_MIME_TYPES:
        return f"File type {content_type} is not supported"
    return None


def detect_document_kind(text: str) -> tuple[str, str]:
    """Guess (document_type, side) from quick-pass OCR text."""
    lower = text.lower()
    if any(k in lower for k in _LICENSE_KEYWORDS):
        side = "back" if any(k in lower for k in _LICENSE_BACK_KEYWORDS) else "front"
        return "driver_license", side
    if any(k in lower for k in _CIN_KEYWORDS):
        side = "back" if any(k in lower for k in _CIN_BACK_KEYWORDS) else "front"
        return "cin", side
    return "cin", "front"


def _split_list(text: str) -> list[str]:
    return [part for part in _LIST_SPLIT.split(text) if part]


def map_entities(
    entities: list[dict], full_text: str, document_type: str, side: str,
) -> dict:
    """Map Document AI entities onto standard field names."""
    fields: dict = {}
    raw_entities = []
    for entity in entities:
        entity_type = entity.get("type")
        mention = (entity.get("mentionText") or "").strip()
        if not entity_type or not mention:
            continue
        raw_entities.append({
            "type": entity_type,
            "text": mention,
            "confidence": entity.get("confidence") or 0,
        })
        fields[entity_type] = mention

        key = entity_type.lower()
        if key in ("categories", "license_categories"):
            fields["licenseCategories"] = _split_list(mention)
            fields["categories"] = mention
        elif key in ("restrictions", "limitations"):
            fields["restrictions"] = _split_list(mention)
        else:
            for alias in _FIELD_ALIASES.get(key, ()):
                fields[alias] = mention

    fields["fullText"] = full_text
    fields["rawEntities"] = raw_entities
    fields["documentType"] = document_type
    fields["side"] = side
    return fields


def overall_confidence(entities: list[dict]) -> float:
    if not entities:
        return 0.0
    return sum(e.get("confidence") or 0 for e in entities) / len(entities)


def merge_fields(base: dict, extra: Mapping, overwrite: bool) -> dict:
    """Merge extracted fields. Back sides pass overwrite=False."""
    merged = dict(base)
    for key, value in extra.items():
        if not value:
            continue
        if overwrite or not merged.get(key):
            merged[key] = value
    return merged
