"""Error Hierarchy — typed, categorized exceptions for all FleetDesk failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are caller mistakes; infrastructure errors (500-level) are critical
    - to_response() always produces {"error": <message>, "code": <code>}
    - UploadTokenError keeps its TokenRejection internally; the response never reveals it

Design Decisions:
    - Single hierarchy with FleetDeskError base: FastAPI global handler catches all (ADR: uniform error shape)
    - Flat {"error": str} envelope over nested objects: the browser and phone clients read error as a string
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    DATABASE = "database"
    STORAGE = "storage"
    EXTERNAL_API = "external_api"
    CONFIGURATION = "configuration"
    INTERNAL = "internal"


class TokenRejection(str, Enum):
    """Why an upload credential was refused. Logged, never returned."""
    INVALID_SIGNATURE = "invalid_signature"
    CREDENTIAL_EXPIRED = "credential_expired"
    WRONG_FLOW = "wrong_flow"
    TOKEN_NOT_FOUND = "token_not_found"
    ENTITY_MISMATCH = "entity_mismatch"
    TOKEN_USED = "token_used"
    TOKEN_EXPIRED = "token_expired"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    entity_id: str | None = None
    upload_id: str | None = None
    document_type: str | None = None
    debug_info: dict[str, Any] | None = None


class FleetDeskError(Exception):
    """Base exception for all FleetDesk errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to the standard JSON error body."""
        return {"error": self.message, "code": self.code}


# ─── Domain Errors (400-level) ──────────────────────────────────

class InvalidRequestError(FleetDeskError):
    """Request is missing a required value or carries a malformed one."""
    def __init__(self, message: str, field: str | None = None, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )
        self.field = field


class InvalidDocumentTypeError(FleetDeskError):
    """Declared document type is not accepted by this flow."""
    def __init__(self, document_type: str, context: ErrorContext | None = None):
        super().__init__(
            "Invalid document type", "INVALID_DOCUMENT_TYPE",
            ErrorCategory.VALIDATION, ErrorSeverity.WARNING, context, 400,
        )
        self.document_type = document_type


class UploadTokenError(FleetDeskError):
    """Upload credential refused. Same message for every reason."""
    def __init__(self, reason: TokenRejection, context: ErrorContext | None = None):
        super().__init__(
            "Invalid or expired token", "INVALID_UPLOAD_TOKEN",
            ErrorCategory.AUTHENTICATION, ErrorSeverity.WARNING, context, 401,
        )
        self.reason = reason


class ResourceNotFoundError(FleetDeskError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.WARNING, context, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class DuplicateEmailError(FleetDeskError):
    """Client email collides with an existing client."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Email already exists. Use a different email or leave it blank.",
            "DUPLICATE_EMAIL", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, context, 409,
        )


class UploadAlreadyCompletedError(FleetDeskError):
    """Completion requested for a session that is already closed."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Upload already completed", "UPLOAD_ALREADY_COMPLETED",
            ErrorCategory.CONFLICT, ErrorSeverity.WARNING, context, 409,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(FleetDeskError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.operation = operation


class StorageError(FleetDeskError):
    """Object storage call failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Storage error: {message}",
            "STORAGE_ERROR", ErrorCategory.STORAGE,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.operation = operation


class DocumentAIError(FleetDeskError):
    """Document AI call failed or returned an unusable body."""
    def __init__(self, message: str, status_code: int | None = None, context: ErrorContext | None = None):
        super().__init__(
            f"Document AI error: {message}",
            "DOCUMENT_AI_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.status_code = status_code


class ConfigurationError(FleetDeskError):
    """A setting required by this endpoint is absent."""
    def __init__(self, missing: list[str], context: ErrorContext | None = None):
        super().__init__(
            f"Missing configuration: {', '.join(missing)}",
            "CONFIGURATION_ERROR", ErrorCategory.CONFIGURATION,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.missing = missing
