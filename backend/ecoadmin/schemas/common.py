"""
EcoAdmin Backend: Response Envelopes
=====================================

What:  The JSON envelope shared by every endpoint, plus pagination, error and
       health models.
How:   All API models inherit CamelModel, so Python attributes stay
       snake_case while the JSON contract uses camelCase keys
       (submittedAt, rejectionReason, ...), as existing clients expect.

Envelope shapes:
    success:  {"success": true, "message": "...", "data": {...}}
    list:     {"success": true, "count": 3, "data": [...]}
    page:     {"success": true, "data": [...], "pagination": {...}}
    error:    {"success": false, "error": "not_found", "message": "...",
               "details": {...}, "requestId": "a1b2c3d4"}
"""

import math
from datetime import datetime
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ApiResponse(CamelModel, Generic[T]):
    """Single-object success envelope."""
    success: bool = True
    message: Optional[str] = None
    data: T


class ListResponse(CamelModel, Generic[T]):
    """Unpaginated list envelope; count is the number of items returned."""
    success: bool = True
    count: int
    data: List[T]


class Pagination(CamelModel):
    current: int = Field(description="Current page (1-based)")
    pages: int = Field(description="Total number of pages")
    total: int = Field(description="Total number of matching records")
    limit: int = Field(description="Page size")

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(current=page, pages=math.ceil(total / limit), total=total, limit=limit)


class PageResponse(CamelModel, Generic[T]):
    """Paginated list envelope."""
    success: bool = True
    data: List[T]
    pagination: Pagination


class ErrorResponse(CamelModel):
    """
    Standardized error body for all API errors.

    error is machine-readable (validation_error, not_found, invalid_state,
    store_unavailable, server_error, ...); message is for display.
    """
    success: bool = False
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(CamelModel):
    success: bool
    message: str
    version: str
    environment: str
    timestamp: datetime
    database: str = Field(description="Record store connectivity: connected, disconnected")
    uploads_dir: str
    uptime_seconds: float
