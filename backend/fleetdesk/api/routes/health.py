"""Health & Readiness Probes — liveness, and readiness gated on the database.

Invariants:
    - GET /api/v1/health/ answers 200 whenever the process is up
    - GET /api/v1/health/ready answers 503 when the database is unreachable or not initialized
    - Storage and Document AI are reported, never gating: each fails per request
      with CONFIGURATION_ERROR instead

Design Decisions:
    - db_manager read through the module at call time: it is created in the lifespan
"""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from fleetdesk.config import Settings, get_settings
from fleetdesk.infrastructure import database

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


def _integrations(settings: Settings) -> dict:
    return {
        "storage": "configured" if settings.storage_configured else "not_configured",
        "documentAi": "configured" if settings.document_ai_configured else "not_configured",
    }


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    return {"status": "healthy", "service": "fleetdesk-api", "version": "1.0.0"}


@router.get("/ready")
async def readiness_check(settings: Settings = Depends(get_settings)):
    manager = database.db_manager
    if manager is None or not await manager.health_check():
        logger.warning("Readiness check failed", extra={"fail_reason": "database_unavailable"})
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "reason": "database_unavailable"},
        )
    return {
        "status": "ready",
        "checks": {"database": "healthy"},
        "integrations": _integrations(settings),
    }
