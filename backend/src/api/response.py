"""{ data, error } envelope helpers shared by every endpoint."""

from typing import Any

from fastapi.responses import JSONResponse


def success_response(data: Any) -> dict[str, Any]:
    """Wrap a payload in a success envelope."""
    return {"data": data, "error": None}


def error_response(code: str, message: str) -> dict[str, Any]:
    """Build an error envelope with a machine-readable code."""
    return {"data": None, "error": {"code": code, "message": message}}


def error_json(status_code: int, code: str, message: str) -> JSONResponse:
    """Error envelope as a JSONResponse, for exception handlers."""
    return JSONResponse(status_code=status_code, content=error_response(code, message))
