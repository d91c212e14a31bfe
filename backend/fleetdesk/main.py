"""FleetDesk API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map FleetDeskError → {"error", "code"} JSON responses
    - CORS configured from settings (not hardcoded)
    - Database initialized on startup via lifespan context manager; storage, signer and
      Document AI are built per request so a missing integration never blocks boot

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Error handlers live in api/error_handlers.py: domain, validation, framework HTTP,
      catch-all — never leaks internal details
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fleetdesk.api.error_handlers import register_error_handlers
from fleetdesk.api.routes import (
    cars, clients, health, mobile_uploads, ocr, upload_links,
)
from fleetdesk.config import get_settings
from fleetdesk.infrastructure import database
from fleetdesk.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    database.init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    logger.info("FleetDesk API started")
    yield
    logger.info("FleetDesk API shutting down")
    if database.db_manager:
        await database.db_manager.close()


app = FastAPI(
    title="FleetDesk API", version="1.0.0", lifespan=lifespan,
)

# CORS: configured from settings
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes: explicit registration
app.include_router(health.router)
app.include_router(clients.router)
app.include_router(cars.router)
app.include_router(upload_links.router)
app.include_router(mobile_uploads.client_router)
app.include_router(mobile_uploads.car_router)
app.include_router(ocr.router)

register_error_handlers(app)
