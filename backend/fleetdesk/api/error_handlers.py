"""Error Handlers — global exception handlers for the FleetDesk API.

Invariants:
    - Every error body is {"error": <message>, "code": <CODE>} (validation adds "details")
    - FleetDeskError → its own http_status; UploadTokenError reason is logged, never returned
    - RequestValidationError → 400 with field-level details
    - Starlette HTTPException (unknown route, wrong method) → same flat shape
    - Exception (catch-all) → 500, never leaks internal details

Design Decisions:
    - Four-layer handler: domain (FleetDeskError), validation (Pydantic), framework
      HTTP errors, catch-all (Exception)
    - Extracted from main.py to keep the entry point's import fan-out small
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from fleetdesk.core.errors import FleetDeskError, UploadTokenError

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_fleetdesk_error_handler(app)
    _register_validation_error_handler(app)
    _register_http_error_handler(app)
    _register_generic_error_handler(app)


def _register_fleetdesk_error_handler(app: FastAPI) -> None:
    """Register FleetDesk domain/infrastructure error handler."""

    @app.exception_handler(FleetDeskError)
    async def fleetdesk_error_handler(request: Request, exc: FleetDeskError):
        """Handle all FleetDesk domain/infrastructure errors."""
        extra = {"error_code": exc.code, "path": request.url.path}
        if isinstance(exc, UploadTokenError):
            extra["fail_reason"] = exc.reason.value
        if exc.http_status >= 500:
            logger.error(f"FleetDeskError: {exc.message}", extra=extra)
        else:
            logger.warning(f"FleetDeskError: {exc.message}", extra=extra)
        return JSONResponse(
            status_code=exc.http_status, content=exc.to_response(),
        )


def _register_validation_error_handler(app: FastAPI) -> None:
    """Register Pydantic validation error handler."""

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        """Handle Pydantic validation errors."""
        logger.warning(
            f"Validation error on {request.url.path}: {exc.errors()}",
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_build_validation_error_response(exc),
        )


def _register_http_error_handler(app: FastAPI) -> None:
    """Register framework HTTP error handler (404 route, 405 method)."""

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail), "code": f"HTTP_{exc.status_code}"},
            headers=getattr(exc, "headers", None),
        )


def _register_generic_error_handler(app: FastAPI) -> None:
    """Register catch-all error handler."""

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all — never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )


def _build_validation_error_response(exc: RequestValidationError) -> dict:
    """Build structured validation error response."""
    errors = exc.errors()
    first = errors[0] if errors else None
    message = (
        f"{'.'.join(str(loc) for loc in first['loc'][1:]) or 'request'}: {first['msg']}"
        if first else "Invalid request data"
    )
    return {
        "error": message,
        "code": "VALIDATION_ERROR",
        "details": [
            {
                "field": ".".join(str(loc) for loc in e["loc"]),
                "message": e["msg"],
                "type": e["type"],
            }
            for e in errors
        ],
    }
