"""Car Service — fleet CRUD and car paperwork.

Invariants:
    - Deleting a car removes its upload sessions, scan rows and tokens first
    - Direct document uploads write {car_id}/{document_type}_{epoch_ms}{ext} in the car bucket
    - Unknown car ids are a 404 for delete, document update and document upload
"""

import logging
from datetime import datetime, timezone
from uuid import UUID

from fleetdesk.core.errors import InvalidDocumentTypeError, ResourceNotFoundError
from fleetdesk.core.repository_protocols import CarRepository, ObjectStorage
from fleetdesk.core.upload_documents import CAR_DOCUMENT_COLUMNS, build_storage_key

logger = logging.getLogger(__name__)


class CarService:
    """Cars and their documents."""

    def __init__(
        self,
        cars: CarRepository,
        storage: ObjectStorage | None = None,
        bucket: str | None = None,
    ):
        self.cars = cars
        self.storage = storage
        self.bucket = bucket

    async def _require(self, car_id: UUID) -> dict:
        car = await self.cars.get(car_id)
        if car is None:
            raise ResourceNotFoundError("Car", str(car_id))
        return car

    async def list_cars(self) -> dict:
        return {"success": True, "cars": await self.cars.list_all()}

    async def create_car(self, fields: dict) -> dict:
        car = await self.cars.create(fields)
        logger.info("Car created", extra={"entity_id": car["id"]})
        return {"success": True, "car": car, "message": "Car created successfully"}

    async def delete_car(self, car_id: UUID) -> dict:
        await self._require(car_id)
        await self.cars.delete_with_dependents(car_id)
        logger.info("Car deleted", extra={"entity_id": car_id})
        return {"success": True, "message": "Car deleted successfully"}

    async def update_documents(self, car_id: UUID, documents: dict) -> dict:
        await self._require(car_id)
        car = await self.cars.update_fields(car_id, documents)
        return {"success": True, "car": car, "message": "Car documents updated successfully"}

    async def upload_document(
        self,
        car_id: UUID,
        document_type: str,
        filename: str | None,
        content_type: str | None,
        data: bytes,
        now: datetime | None = None,
    ) -> dict:
        column = CAR_DOCUMENT_COLUMNS.get(document_type)
        if column is None:
            raise InvalidDocumentTypeError(document_type)
        await self._require(car_id)

        now = now or datetime.now(timezone.utc)
        key = build_storage_key(car_id, document_type, filename, content_type, now)
        await self.storage.upload(self.bucket, key, data, content_type)
        url = self.storage.public_url(self.bucket, key)
        await self.cars.update_fields(car_id, {column: url})
        logger.info(
            "Car document stored",
            extra={"entity_id": car_id, "document_type": document_type},
        )
        return {
            "success": True,
            "message": "Document uploaded successfully",
            "documentType": document_type,
            "url": url,
        }
