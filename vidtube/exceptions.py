"""API error hierarchy.

Every failure surfaced to a client is an ApiError carrying the HTTP status
and a user-facing message. The exception handlers in vidtube.main turn it
into the standard response envelope.

    ApiError (base)
    ├── ValidationError      400
    ├── UploadError          400
    │   └── PayloadTooLargeError  413
    ├── UnauthorizedError    401
    ├── NotFoundError        404
    ├── ConflictError        409
    └── InternalError        500
"""

from typing import Any, Optional


class ApiError(Exception):
    """Base exception for errors returned to API clients.

    Attributes:
        status_code: HTTP status for the response
        message: Human-readable error description
        errors: Optional field-level error details
        detail: Internal context for logs only, never serialized
    """

    status_code: int = 500
    default_message: str = "Something went wrong"

    def __init__(
        self,
        message: Optional[str] = None,
        errors: Optional[list[Any]] = None,
        detail: Optional[str] = None,
    ):
        self.message = message or self.default_message
        self.errors = errors or []
        self.detail = detail
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Render the error as the standard response envelope."""
        return {
            "statusCode": self.status_code,
            "data": None,
            "message": self.message,
            "success": False,
            "errors": self.errors,
        }


class ValidationError(ApiError):
    """Malformed or missing input."""

    status_code = 400
    default_message = "Invalid request"


class UploadError(ApiError):
    """A required media asset could not be uploaded."""

    status_code = 400
    default_message = "File upload failed"


class PayloadTooLargeError(UploadError):
    """An uploaded file exceeds the configured size limit."""

    status_code = 413
    default_message = "Uploaded file is too large"


class UnauthorizedError(ApiError):
    """Missing, invalid or expired credentials."""

    status_code = 401
    default_message = "Unauthorized request"


class NotFoundError(ApiError):
    status_code = 404
    default_message = "Resource not found"


class ConflictError(ApiError):
    status_code = 409
    default_message = "Resource already exists"


class InternalError(ApiError):
    """Unexpected server-side failure.

    The originating exception should be chained (``raise ... from exc``) so
    it is available to logging while the client only sees the message.
    """

    status_code = 500
    default_message = "Internal server error"
