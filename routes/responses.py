"""
routes/responses.py

Responsibility: Builds the {"success", "data", "error"} JSON envelope shared by
all API routes.
Does NOT: decide status codes for business errors: route handlers do.
"""

from __future__ import annotations

from typing import Any

from fastapi.responses import JSONResponse


def success(data: Any) -> dict[str, Any]:
    return {"success": True, "data": data, "error": None}


def error(status_code: int, code: str, message: str) -> JSONResponse:
    """
    Returns a JSON error envelope with the given HTTP status.

    Args:
        status_code: HTTP status for the response.
        code: Machine-readable error code, e.g. "TEMPLATE_NOT_FOUND".
        message: Human-readable description.

    Returns:
        A JSONResponse.
    """
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "data": None, "error": {"code": code, "message": message}},
    )
