"""
StreetPaws Backend — Custom Exception Hierarchy
=================================================

What:  Application-specific exceptions for the different error scenarios.
How:   Each exception carries a message and an optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with the right status code.
Who:   Raised by services and storage; caught by global handlers.

Exception Hierarchy:
    StreetPawsError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    ├── NotFoundError            → 404 Not Found
    ├── FileStorageError         → 500 Internal Server Error
    ├── DatabaseError            → 500 Internal Server Error
    └── GatewayInstallError      → raised client-side by the offline gateway
"""

from typing import Any, Dict, List, Optional


class StreetPawsError(Exception):
    """
    Base exception for all StreetPaws application errors.

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


class ValidationError(StreetPawsError):
    """
    Raised when client input fails validation.

    HTTP: 400 Bad Request

    `errors` is the structured list of field-level problems returned to the
    client, each item shaped {"field": ..., "message": ...}.

    Example response:
        {
            "error": "validation_error",
            "message": "Only image files are allowed",
            "errors": [{"field": "photo", "message": "Only image files are allowed"}]
        }
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        errors: Optional[List[Dict[str, str]]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field
        if errors is None:
            errors = [{"field": field or "body", "message": message}]
        self.errors = errors


class NotFoundError(StreetPawsError):
    """
    Raised when a requested resource does not exist.

    When:  Unknown numeric animal id, unknown public identifier.
    HTTP:  404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class FileStorageError(StreetPawsError):
    """
    Raised when file system operations fail.

    When:  Upload directory not writable, disk full, I/O error.
    HTTP:  500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(StreetPawsError):
    """
    Raised when database operations fail unexpectedly.

    HTTP: 500 Internal Server Error

    The message returned to the client is always generic. Details (SQL,
    constraint names) are logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class GatewayInstallError(StreetPawsError):
    """
    Raised by the offline caching gateway when precaching fails.

    Install is all-or-nothing: one failed manifest entry leaves the cache
    untouched and the worker redundant.
    """

    def __init__(
        self,
        url: str,
        reason: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["url"] = url
        ctx["reason"] = reason
        super().__init__(
            message=f"Could not precache '{url}': {reason}",
            context=ctx,
        )
        self.url = url
        self.reason = reason
