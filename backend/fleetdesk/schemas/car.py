"""Car Schemas — fleet records and car document updates.

Invariants:
    - CarDocuments only writes keys the caller sent; an explicit empty string clears the column
    - status in available | rented | maintenance
"""

from datetime import date
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

_DATE_FIELDS = (
    "carte_grise_issue_date", "carte_grise_expiry_date",
    "insurance_issue_date", "insurance_expiry_date",
    "technical_inspection_issue_date", "technical_inspection_expiry_date",
    "rental_agreement_start_date", "rental_agreement_end_date",
)


class CarCreate(BaseModel):
    """New fleet car."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    brand: str = Field(min_length=1, max_length=100)
    model: str = Field(min_length=1, max_length=100)
    plate_number: str = Field(min_length=1, max_length=50)
    year: int | None = Field(None, ge=1900, le=2100)
    price_per_day: float | None = Field(None, ge=0)
    category: str | None = None
    features: list[str] = Field(default_factory=list)
    image_url: str | None = None
    status: Literal["available", "rented", "maintenance"] = "available"


class CarDocuments(BaseModel):
    """Document URLs and dates, snake_case as stored."""
    carte_grise_url: str | None = None
    insurance_url: str | None = None
    technical_inspection_url: str | None = None
    rental_agreement_url: str | None = None
    other_documents_url: str | None = None

    carte_grise_issue_date: date | None = None
    carte_grise_expiry_date: date | None = None
    insurance_issue_date: date | None = None
    insurance_expiry_date: date | None = None
    technical_inspection_issue_date: date | None = None
    technical_inspection_expiry_date: date | None = None
    rental_agreement_start_date: date | None = None
    rental_agreement_end_date: date | None = None

    @field_validator("*", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        return None if v == "" else v

    def to_fields(self) -> dict:
        return self.model_dump(exclude_unset=True)


class CarDocumentsUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    car_id: UUID = Field(alias="carId")
    documents: CarDocuments = Field(default_factory=CarDocuments)


class CarIdBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    car_id: UUID = Field(alias="carId")
