"""Client Schemas — camelCase request bodies from the dashboard client form.

Invariants:
    - Email is trimmed and lower-cased; blank becomes None (never an empty-string duplicate)
    - licenseCategories accepts a list or a single string and always yields a list
    - Blank date strings become None
    - to_fields() returns snake_case column values; status is always "active" on create

Design Decisions:
    - alias_generator=to_camel with populate_by_name: the browser sends camelCase,
      tests may use either
"""

from datetime import date
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EmergencyContact(_CamelModel):
    name: str | None = None
    phone: str | None = None
    relationship: str | None = None


class ClientCreate(_CamelModel):
    """New client from the desk form."""
    first_name: str = Field(default="", max_length=100)
    last_name: str = Field(default="", max_length=100)
    email: str | None = Field(None, max_length=255)
    gender: str | None = None
    nationality: str | None = None
    date_of_birth: date | None = None
    phone: str | None = None
    address: str | None = None

    id_number: str | None = None
    id_issue_date: date | None = None
    id_expiry_date: date | None = None
    id_front_image_url: str | None = None
    id_back_image_url: str | None = None

    license_number: str | None = None
    license_issue_date: date | None = None
    license_expiry_date: date | None = None
    license_categories: list[str] = Field(default_factory=list)
    license_front_image_url: str | None = None
    license_back_image_url: str | None = None

    emergency_contact: EmergencyContact | None = None
    notes: str | None = None

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        if v is None:
            return None
        v = str(v).strip().lower()
        return v or None

    @field_validator("license_categories", mode="before")
    @classmethod
    def coerce_categories(cls, v):
        if v is None or v == "":
            return []
        if isinstance(v, str):
            return [v]
        return v

    @field_validator(
        "date_of_birth", "id_issue_date", "id_expiry_date",
        "license_issue_date", "license_expiry_date", mode="before",
    )
    @classmethod
    def blank_date(cls, v):
        return None if v == "" else v

    def to_fields(self) -> dict:
        fields = self.model_dump(exclude={"emergency_contact"})
        contact = self.emergency_contact or EmergencyContact()
        fields["emergency_contact_name"] = contact.name
        fields["emergency_contact_phone"] = contact.phone
        fields["emergency_contact_relationship"] = contact.relationship
        fields["status"] = "active"
        return fields


class ClientIdBody(_CamelModel):
    """Body carrying only a client id (image sync, QR issuance)."""
    client_id: UUID
