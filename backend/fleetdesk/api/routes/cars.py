"""Car Routes — fleet list/create/delete and car paperwork.

Invariants:
    - DELETE /api/cars/delete?id= removes dependents before the car
    - Unknown car → 404 on delete, document update and document upload
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from fleetdesk.api.dependencies import get_car_repository, get_object_storage_dep
from fleetdesk.config import Settings, get_settings
from fleetdesk.core.errors import InvalidRequestError
from fleetdesk.core.repository_protocols import ObjectStorage
from fleetdesk.schemas.car import CarCreate, CarDocumentsUpdate
from fleetdesk.services.cars import CarService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/cars", tags=["cars"])


@router.get("")
async def list_cars(cars=Depends(get_car_repository)):
    return await CarService(cars).list_cars()


@router.post("")
async def create_car(body: CarCreate, cars=Depends(get_car_repository)):
    return await CarService(cars).create_car(body.model_dump())


@router.delete("/delete")
async def delete_car(
    car_id: UUID = Query(alias="id"), cars=Depends(get_car_repository),
):
    return await CarService(cars).delete_car(car_id)


@router.post("/update-documents")
async def update_car_documents(
    body: CarDocumentsUpdate, cars=Depends(get_car_repository),
):
    return await CarService(cars).update_documents(
        body.car_id, body.documents.to_fields(),
    )


@router.post("/upload-document")
async def upload_car_document(
    file: UploadFile | None = File(None),
    car_id: UUID | None = Form(None, alias="carId"),
    document_type: str | None = Form(None, alias="documentType"),
    cars=Depends(get_car_repository),
    storage: ObjectStorage = Depends(get_object_storage_dep),
    settings: Settings = Depends(get_settings),
):
    """Attach a document file straight to a car (no QR token)."""
    if file is None or car_id is None or not document_type:
        raise InvalidRequestError("File, carId, and documentType are required")
    data = await file.read()
    service = CarService(cars, storage, settings.car_documents_bucket)
    return await service.upload_document(
        car_id, document_type, file.filename, file.content_type, data,
    )
