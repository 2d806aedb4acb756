"""Error Hierarchy — typed, categorized exceptions for all MacDir failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are recoverable; infrastructure errors (500-level) are critical
    - to_response() produces the REST envelope
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with MacDirError base: FastAPI global handler catches all (ADR: uniform error shape)
    - Closed set of subclasses per boundary (validation, conflict, not found, auth, store);
      HTTP status attached here but only read by api/error_handlers.py
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    AUTH = "auth"
    CONFIGURATION = "configuration"
    DATABASE = "database"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    record_id: str | None = None
    field: str | None = None
    debug_info: dict[str, Any] | None = None


class MacDirError(Exception):
    """Base exception for all MacDir errors."""

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
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "record_id": self.context.record_id,
                    "field": self.context.field,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class RecordValidationError(MacDirError):
    """Record field failed normalization or validation."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.field = field
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, ctx, 400,
        )
        self.field = field


class MacConflictError(MacDirError):
    """Another record already holds this canonical MAC.

    409 on create, 400 on update.
    """
    def __init__(
        self, mac: str, context: ErrorContext | None = None, http_status: int = 409,
    ):
        ctx = context or ErrorContext()
        ctx.field = "mac"
        super().__init__(
            "MAC address already exists",
            "MAC_CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, ctx, http_status,
        )
        self.mac = mac


class ResourceNotFoundError(MacDirError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.record_id = resource_id
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, ctx, 404,
        )


# ─── Auth Errors ────────────────────────────────────────────────

class LockedError(MacDirError):
    """Request requires an unlocked session."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Locked", "LOCKED", ErrorCategory.AUTH,
            ErrorSeverity.WARNING, context, 401,
        )


class InvalidPinError(MacDirError):
    """Submitted PIN matches neither configured secret."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Invalid PIN", "INVALID_PIN", ErrorCategory.AUTH,
            ErrorSeverity.WARNING, context, 401,
        )


class PinNotConfiguredError(MacDirError):
    """No PIN configured at all — unlock can never succeed."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Server PINs not configured. Set LOCK_PIN or HARDCORE_PIN.",
            "PIN_NOT_CONFIGURED", ErrorCategory.CONFIGURATION,
            ErrorSeverity.CRITICAL, context, 500,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(MacDirError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.operation = operation
