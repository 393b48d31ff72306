"""
Care Guide Notes API — Response Envelope Schemas
==================================================

What:  The uniform envelope every endpoint returns, pagination metadata, the
       error body and the health-check body.
Why:   The single-page client reads `success`, `message`, `data` and `meta`
       the same way on every screen.

Envelope (camelCase keys on the wire, as the client expects):
    {
        "success": true,
        "statusCode": 200,
        "message": "Notes retrieved successfully",
        "data": [...],
        "meta": {"total": 25, "page": 2, "limit": 10, "totalPage": 3}
    }
"""

from typing import Any, Optional

from pydantic import BaseModel, Field


class PaginationMeta(BaseModel):
    """
    Result-count metadata for list endpoints.

    total_page is ceil(total / limit), which is 0 for an empty result set.
    """

    total: int = Field(description="Rows matching filter + search, ignoring pagination")
    page: int = Field(description="Resolved 1-based page number")
    limit: int = Field(description="Resolved page size")
    total_page: int = Field(alias="totalPage", description="ceil(total / limit)")

    model_config = {"populate_by_name": True}


class ApiResponse(BaseModel):
    success: bool = True
    status_code: int = Field(alias="statusCode")
    message: str
    data: Any = None
    meta: Optional[PaginationMeta] = None

    model_config = {"populate_by_name": True}


def send_response(
    status_code: int,
    message: str,
    data: Any = None,
    meta: Optional[PaginationMeta] = None,
) -> ApiResponse:
    """Wrap a service result in the response envelope."""
    return ApiResponse(
        success=True,
        status_code=status_code,
        message=message,
        data=data,
        meta=meta,
    )


class ErrorResponse(BaseModel):
    """
    Error body produced by the global exception handlers.

    Example:
        {
            "success": false,
            "statusCode": 404,
            "error": "not_found",
            "message": "Note not found",
            "request_id": "1f2e3d4c"
        }
    """

    success: bool = False
    status_code: int = Field(alias="statusCode")
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")

    model_config = {"populate_by_name": True}


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
