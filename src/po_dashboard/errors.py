"""
Error taxonomy for the PO Dashboard client.

Every failure the client surfaces is a DashboardError tagged with an
ErrorKind. The HTTP adapter maps transport failures and response status
codes onto the ApiError subclasses; the upload coordinator raises
UploadValidationError for files rejected before any network call.
"""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Category of a client-visible failure."""

    UNAUTHORIZED = "unauthorized"
    CLIENT_ERROR = "client_error"
    SERVER_ERROR = "server_error"
    TRANSIENT = "transient"
    VALIDATION = "validation"


class UploadRejection(str, Enum):
    """Reason a file candidate failed client-side validation."""

    UNSUPPORTED_TYPE = "unsupported_type"
    TOO_LARGE = "too_large"


class DashboardError(Exception):
    """Base exception for all client errors."""

    kind: ErrorKind = ErrorKind.SERVER_ERROR

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        detail: str | None = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        # Message supplied by the server, when it sent one
        self.detail = detail
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert the error to a dictionary for display layers."""
        return {
            "error_type": self.__class__.__name__,
            "kind": self.kind.value,
            "message": self.message,
            "status_code": self.status_code,
            "detail": self.detail,
        }


class ApiError(DashboardError):
    """Raised by the HTTP adapter when a request does not succeed."""


class UnauthorizedError(ApiError):
    """The server answered 401. The session has been cleared."""

    kind = ErrorKind.UNAUTHORIZED


class ClientError(ApiError):
    """The server rejected the request with a 4xx other than 401."""

    kind = ErrorKind.CLIENT_ERROR


class ServerError(ApiError):
    """The server failed with a 5xx or returned an unreadable body."""

    kind = ErrorKind.SERVER_ERROR


class TransientError(ApiError):
    """Network failure or timeout. Safe to retry."""

    kind = ErrorKind.TRANSIENT


class UploadValidationError(DashboardError):
    """A file candidate was rejected before reaching the network."""

    kind = ErrorKind.VALIDATION

    def __init__(self, reason: UploadRejection, message: str) -> None:
        self.reason = reason
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["reason"] = self.reason.value
        return data
