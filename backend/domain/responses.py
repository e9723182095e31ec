"""
Standard response envelopes.

- Success: { "success": true, "data": <payload>, "meta": {...} }
- Error:   { "success": false, "error": { "code": "...", "message": "...", "details": {...} } }

List endpoints also advertise ``poll_interval_seconds`` in meta so polling
clients know the cadence the server is sized for.
"""
from typing import Any
from pydantic import BaseModel, Field

from config import settings


class ErrorDetail(BaseModel):
    """Standard error detail structure."""
    code: str = Field(..., description="Stable error code (e.g. 'order_terminal', 'not_found')")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] | None = Field(default=None, description="Additional error context")


class StandardErrorResponse(BaseModel):
    """Standard error response envelope."""
    success: bool = Field(False, description="Always false for errors")
    error: ErrorDetail = Field(..., description="Error details")


ERROR_RESPONSES = {
    400: {"model": StandardErrorResponse},
    401: {"model": StandardErrorResponse},
    403: {"model": StandardErrorResponse},
    404: {"model": StandardErrorResponse},
    409: {"model": StandardErrorResponse},
    503: {"model": StandardErrorResponse},
}


def error_body(code: str, message: str, details: Any = None) -> dict[str, Any]:
    return {
        "success": False,
        "error": {"code": code, "message": message, "details": details},
    }


def success_response(data: Any, meta: dict[str, Any] | None = None) -> dict[str, Any]:
    """
    Create a standardized success response.

    Args:
        data: The response payload
        meta: Optional metadata (pagination, polling hints, etc.)
    """
    response = {"success": True, "data": data}
    if meta:
        response["meta"] = meta
    return response


def paginated_response(
    items: list[Any],
    limit: int,
    offset: int = 0,
    total: int | None = None,
    extra_meta: dict[str, Any] | None = None,
    skipped: int = 0,
) -> dict[str, Any]:
    """
    Create a standardized paginated response for a polled listing.

    ``skipped`` is the number of stored rows on this page that could not
    be serialized. They are left out of ``total`` but still count toward
    ``hasMore``, since the next page starts after them.

    Returns:
        dict: { "success": true, "data": <items>,
                "meta": { "limit", "offset", "total", "hasMore", "poll_interval_seconds", ... } }
    """
    if total is None:
        total = len(items) + skipped

    meta = {
        "limit": limit,
        "offset": offset,
        "total": total - skipped,
        "hasMore": (offset + limit) < total,
        "poll_interval_seconds": settings.poll_interval_seconds,
    }
    if skipped:
        meta["skipped"] = skipped
    if extra_meta:
        meta.update(extra_meta)
    return success_response(data=items, meta=meta)
