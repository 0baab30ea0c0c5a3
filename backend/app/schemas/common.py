"""
DevCamper Backend — Shared Response Schemas
=============================================

What:  Envelope models shared by every resource.
Why:   Every response has the same outer shape:
           success:  {"success": true, "data": ...} (+ count / pagination for lists)
           failure:  {"success": false, "error": "..."}
       Clients can branch on `success` without knowing which route answered.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class PageRef(BaseModel):
    page: int
    limit: int


class QueryResult(BaseModel):
    """
    Output of the query shaping service.

    `pagination` only contains the keys that apply (`next` and/or `prev`).
    `total` is the count over all matching rows; it is sent in the
    X-Total-Count header rather than the body.
    """
    success: bool = True
    count: int = Field(ge=0, description="Number of rows in this page")
    pagination: Dict[str, PageRef] = Field(default_factory=dict)
    data: List[Dict[str, Any]] = Field(default_factory=list)
    total: int = Field(default=0, ge=0, exclude=True)


class ListResponse(BaseModel):
    """Unpaginated collection (nested routes and radius search)."""
    success: bool = True
    count: int
    data: List[Dict[str, Any]]


class DataResponse(BaseModel):
    success: bool = True
    data: Any = None


class TokenResponse(BaseModel):
    success: bool = True
    token: str


class ErrorResponse(BaseModel):
    """
    Standardized error body for all API errors.

    Example:
        {
            "success": false,
            "error": "User role user is not authorized to access this route",
            "request_id": "a1b2c3d4"
        }
    """
    success: bool = False
    error: str = Field(description="Human-readable error description")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str
    database: str = Field(description="connected, disconnected")
    geocoder: str = Field(description="configured, not_configured")
    uptime_seconds: float
