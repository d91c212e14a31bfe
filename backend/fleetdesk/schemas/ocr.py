"""OCR Schemas — stored front/back pair processing request."""

from pydantic import BaseModel, ConfigDict, Field


class ProcessDocumentsRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    document_type: str = Field(alias="documentType", min_length=1)
    front_image_url: str = Field(alias="frontImageUrl", min_length=1)
    back_image_url: str = Field(alias="backImageUrl", min_length=1)
