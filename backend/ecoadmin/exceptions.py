"""
EcoAdmin Backend: Custom Exception Hierarchy
=============================================

What:  Application-specific exceptions for every failure a request can hit.
How:   Each exception carries a user-facing message and an optional context
       dict. Global handlers registered in main.py turn them into the JSON
       error envelope with the matching HTTP status code.
Who:   Raised by services, dependencies and middleware.

Exception Hierarchy:
    EcoAdminError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    ├── NotFoundError            → 404 Not Found
    ├── InvalidStateError        → 409 Conflict (record already processed,
    │                                 or join target not approved)
    ├── RateLimitExceededError   → 429 Too Many Requests
    ├── StoreUnavailableError    → 503 Service Unavailable (safe to retry)
    └── UnclassifiedError        → 500 Internal Server Error
        ├── DatabaseError
        └── FileStorageError

Services never let a raw driver or OS exception escape: store failures are
translated by ecoadmin.database.store_errors(), blob failures by ImageService.
"""

from typing import Any, Dict, Optional


class EcoAdminError(Exception):
    """
    Base exception for all EcoAdmin application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(EcoAdminError):
    """
    Raised when client input fails validation.

    When:    Missing or blank fields, age out of range, bad status filter,
             disallowed image type, empty or oversized image.
    HTTP:    400 Bad Request

    Example response:
        {
            "success": false,
            "error": "validation_error",
            "message": "Age must be between 18 and 100",
            "details": {"field": "age"}
        }
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(EcoAdminError):
    """
    Raised when a requested record (or its image) does not exist.

    Malformed identifiers are reported the same way: an id that cannot be
    parsed can never resolve to a record.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource.capitalize()} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)
        self.resource = resource


class InvalidStateError(EcoAdminError):
    """
    Raised when an operation is not allowed in the record's current status.

    When:
        - approve/reject on a record that is no longer pending
        - join request against a location that is not approved
    HTTP:    409 Conflict
    """

    def __init__(
        self,
        message: str = "The record is not in a state that allows this operation",
        current_status: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if current_status:
            ctx["current_status"] = current_status
        super().__init__(message=message, context=ctx)
        self.current_status = current_status


class RateLimitExceededError(EcoAdminError):
    """Raised when a client exceeds the per-IP request rate limit (429)."""

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class StoreUnavailableError(EcoAdminError):
    """
    Raised when the record store cannot be reached or timed out.

    HTTP:    503 Service Unavailable, with a Retry-After header.
    The request had no effect and the client may retry it unchanged.
    """

    def __init__(
        self,
        message: str = "Database connection timeout. Please try again in a moment.",
        retry_after: int = 5,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
        self.retry_after = retry_after


class UnclassifiedError(EcoAdminError):
    """
    Any failure that is not the caller's fault and not known to be transient.

    HTTP:    500 Internal Server Error. The response message stays generic;
             details are logged server-side only.
    """

    def __init__(
        self,
        message: str = "An internal error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(UnclassifiedError):
    """A query or commit failed for a reason other than connectivity."""

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class FileStorageError(UnclassifiedError):
    """
    Could not read or write an image blob on the storage volume.

    When:    Disk full, permission denied, directory not writable, I/O error.
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
