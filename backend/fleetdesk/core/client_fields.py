"""Client Field Projection — turn merged OCR output into client column values.

Invariants:
    - Only non-empty extracted values are projected; existing data is never blanked
    - Dates are parsed from ISO (YYYY-MM-DD) or day-first (DD/MM/YYYY, DD.MM.YYYY, DD-MM-YYYY);
      anything else is dropped
    - Placeholder clients always get first_name (falls back to "New Client") and status active
"""

import re
from datetime import date

_DAY_FIRST = re.compile(r"^(\d{1,2})[./-](\d{1,2})[./-](\d{4})$")

PLACEHOLDER_FIRST_NAME = "New Client"


def parse_date(value: object) -> date | None:
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        pass
    match = _DAY_FIRST.match(text)
    if not match:
        return None
    day, month, year = (int(g) for g in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _full_name_parts(parsed: dict) -> tuple[str, str]:
    full = (parsed.get("fullName") or "").split()
    return (full[0] if full else ""), " ".join(full[1:])


def placeholder_fields(parsed: dict | None) -> dict:
    """Column values for a client created on first QR link issuance."""
    parsed = parsed or {}
    first_from_full, last_from_full = _full_name_parts(parsed)
    return {
        "first_name": parsed.get("firstName") or first_from_full or PLACEHOLDER_FIRST_NAME,
        "last_name": parsed.get("lastName") or last_from_full or "",
        "gender": (parsed.get("gender") or "").lower() or None,
        "nationality": parsed.get("nationality") or None,
        "date_of_birth": parse_date(parsed.get("dateOfBirth")),
        "address": parsed.get("address") or None,
        "id_number": parsed.get("idNumber") or None,
        "license_number": parsed.get("licenseNumber") or None,
        "status": "active",
    }


def fields_from_parsed(parsed: dict) -> dict:
    """Client columns filled by document processing. Empty values are skipped."""
    candidates = {
        "first_name": parsed.get("firstName"),
        "last_name": parsed.get("lastName"),
        "date_of_birth": parse_date(parsed.get("dateOfBirth")),
        "nationality": parsed.get("nationality"),
        "gender": (parsed.get("gender") or "").lower() or None,
        "address": parsed.get("address"),
        "id_number": parsed.get("idNumber"),
        "license_number": parsed.get("licenseNumber"),
        "license_categories": parsed.get("licenseCategories"),
    }
    if parsed.get("documentType") == "driver_license":
        candidates["license_issue_date"] = parse_date(parsed.get("issueDate"))
        candidates["license_expiry_date"] = parse_date(parsed.get("expiryDate"))
    else:
        candidates["id_issue_date"] = parse_date(parsed.get("issueDate"))
        candidates["id_expiry_date"] = parse_date(parsed.get("expiryDate"))
    return {key: value for key, value in candidates.items() if value}
