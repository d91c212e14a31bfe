"""Client Field Projection — OCR output to client columns.

Tests:
    - ISO and day-first dates parse; garbage is dropped
    - Placeholders fall back to "New Client" and split fullName
    - Issue/expiry dates go to license_* or id_* columns by document type
"""

from datetime import date

import pytest

from fleetdesk.core.client_fields import (
    PLACEHOLDER_FIRST_NAME, fields_from_parsed, parse_date, placeholder_fields,
)


@pytest.mark.parametrize("value,expected", [
    ("1990-03-14", date(1990, 3, 14)),
    ("1990-03-14T00:00:00Z", date(1990, 3, 14)),
    ("14/03/1990", date(1990, 3, 14)),
    ("4.3.1990", date(1990, 3, 4)),
    ("14-03-1990", date(1990, 3, 14)),
    ("31/02/1990", None),
    ("March 1990", None),
    ("", None),
    (None, None),
    (date(2000, 1, 1), date(2000, 1, 1)),
])
def test_parse_date(value, expected):
    assert parse_date(value) == expected


def test_placeholder_without_data():
    fields = placeholder_fields(None)

    assert fields["first_name"] == PLACEHOLDER_FIRST_NAME
    assert fields["last_name"] == ""
    assert fields["status"] == "active"
    assert fields["gender"] is None


def test_placeholder_from_full_name():
    fields = placeholder_fields({"fullName": "Hamza El Fassi", "gender": "M"})

    assert fields["first_name"] == "Hamza"
    assert fields["last_name"] == "El Fassi"
    assert fields["gender"] == "m"


def test_license_dates_go_to_license_columns():
    fields = fields_from_parsed({
        "documentType": "driver_license", "issueDate": "01/01/2020", "expiryDate": "2030-01-01",
    })

    assert fields == {
        "license_issue_date": date(2020, 1, 1),
        "license_expiry_date": date(2030, 1, 1),
    }


def test_cin_dates_go_to_id_columns():
    fields = fields_from_parsed({"documentType": "cin", "expiryDate": "2029-12-31"})

    assert fields == {"id_expiry_date": date(2029, 12, 31)}


def test_empty_values_skipped():
    fields = fields_from_parsed({
        "firstName": "", "lastName": "Kettani", "licenseCategories": [], "dateOfBirth": "??",
    })

    assert fields == {"last_name": "Kettani"}
