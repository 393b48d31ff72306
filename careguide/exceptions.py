"""
Care Guide Notes API — Custom Exception Hierarchy
===================================================

What:  Application-specific exceptions for the different failure scenarios.
Why:   Targeted error handling with the right HTTP status code and a message
       that is safe to show to API consumers.
How:   Each exception carries a message and an optional context dict.
       Global exception handlers (registered in main.py) turn them into the
       JSON error envelope.

Exception Hierarchy:
    CareGuideError (base)                 → 500
    ├── ValidationError                   → 400 Bad Request
    │   └── InvalidQueryError             → 400 (rejected filter operator/value)
    ├── AuthenticationError               → 401 Unauthorized
    ├── PermissionDeniedError             → 403 Forbidden
    ├── NotFoundError                     → 404 Not Found
    ├── ConflictError                     → 409 Conflict
    └── DatabaseError                     → 500 (generic message, details logged)
"""

from typing import Any, Dict, List, Optional


class CareGuideError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:     User-facing error description (safe to return in API response)
        context:     Additional debug info
        status_code: HTTP status used by the global handler
        error_code:  Machine-readable code for the error envelope
    """

    status_code = 500
    error_code = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(CareGuideError):
    """Client input failed a business rule the client can fix."""

    status_code = 400
    error_code = "validation_error"

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


class InvalidQueryError(ValidationError):
    """
    Raised when a list query is executed with filters the database layer rejects.

    The query builder never raises while stages are chained; problems found
    while translating `field[op]=value` pairs are collected and surface here,
    when the composed query is executed.
    """

    error_code = "invalid_query"

    def __init__(self, problems: List[str]):
        super().__init__(
            message="Invalid query: " + "; ".join(problems),
            context={"problems": problems},
        )
        self.problems = problems


class AuthenticationError(CareGuideError):
    """Missing, invalid or expired credentials."""

    status_code = 401
    error_code = "unauthorized"

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PermissionDeniedError(CareGuideError):
    """The caller is authenticated but not allowed to perform the action."""

    status_code = 403
    error_code = "forbidden"

    def __init__(
        self,
        message: str = "You are not authorized",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(CareGuideError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing rows; services convert that None into
    this exception so routes never deal with it.
    """

    status_code = 404
    error_code = "not_found"

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource.capitalize()} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(CareGuideError):
    """The request would create a duplicate of a unique resource."""

    status_code = 409
    error_code = "conflict"

    def __init__(
        self,
        message: str = "Resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(CareGuideError):
    """
    Raised when database operations fail unexpectedly.

    The message returned to the client is always generic; the original error
    type goes into `context` and is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
