"""Error Hierarchy — typed, categorized exceptions for every failure the API can answer with.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
      and an http_status the automatic status policy uses
    - InvalidInputError is raised before any remote call; it always maps to 400
    - Remote errors are classified once, in the transport layer — handlers only
      override statuses, never re-parse messages
    - to_response() produces the REST error envelope; no 2xx ever carries one

Design Decisions:
    - Single hierarchy with ClusterAPIError base: one FastAPI handler catches all
    - RemoteNotFoundError subclasses RemoteDomainError: outside unpin it folds
      into the generic domain status
"""

from dataclasses import dataclass, field
from enum import Enum
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
    EXTERNAL_API = "external_api"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Request-scoped details attached to an error for logs and responses."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    rpc_service: str | None = None
    rpc_method: str | None = None


class ClusterAPIError(Exception):
    """Base exception for all REST API errors."""

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

    def to_response(self, status: int | None = None) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "status": status if status is not None else self.http_status,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
            }
        }


# ─── Input Errors (400-level) ───────────────────────────────────

class InvalidInputError(ClusterAPIError):
    """Path, query or body parameter failed to decode."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_INPUT", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )
        self.field = field


# ─── Remote Call Errors ─────────────────────────────────────────

class RemoteCallError(ClusterAPIError):
    """Base for failures of the one remote call a request makes."""


class RemoteDomainError(RemoteCallError):
    """The cluster service answered with an error of its own.

    The backend may already have encoded a status; otherwise it is a 500.
    """
    def __init__(
        self,
        message: str,
        http_status: int | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "REMOTE_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, context, http_status or 500,
        )


class RemoteNotFoundError(RemoteDomainError):
    """The cluster service reported the target as unknown."""
    def __init__(
        self,
        message: str = "not found",
        http_status: int | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(message, http_status, context)
        self.code = "NOT_FOUND"
        self.category = ErrorCategory.RESOURCE_NOT_FOUND


class RemoteTimeoutError(RemoteCallError):
    """Remote call exceeded the request deadline."""
    def __init__(self, timeout_seconds: float, context: ErrorContext | None = None):
        super().__init__(
            f"remote call timed out after {timeout_seconds:g}s",
            "REMOTE_TIMEOUT", ErrorCategory.TIMEOUT,
            ErrorSeverity.ERROR, context, 504,
        )
        self.timeout_seconds = timeout_seconds


class RemoteTransportError(RemoteCallError):
    """Cluster service unreachable or the connection broke mid-call."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            f"remote call failed: {message}",
            "REMOTE_UNAVAILABLE", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, context, 502,
        )


class MalformedResponseError(RemoteCallError):
    """Cluster service replied with a body that does not match the expected record."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            f"unexpected response from cluster: {message}",
            "MALFORMED_RESPONSE", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, context, 502,
        )


class ClientDisconnectedError(RemoteCallError):
    """Client went away; the remote call was cancelled and nothing is written."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "client disconnected before the remote call completed",
            "CLIENT_CLOSED_REQUEST", ErrorCategory.CANCELLED,
            ErrorSeverity.INFO, context, 499,
        )
