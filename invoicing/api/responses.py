"""JSON envelopes shared by every API route."""

from typing import Any, Dict, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def success(data: Any = None, meta: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """``{"success": true, "data": ..., "meta": ...}``; meta only when given."""
    body: Dict[str, Any] = {"success": True, "data": data}
    if meta is not None:
        body["meta"] = meta
    return body


def error_response(
    status_code: int, code: str, message: str, details: Optional[Any] = None
) -> JSONResponse:
    error: Dict[str, Any] = {"code": code, "message": message}
    if details is not None:
        error["details"] = details
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder({"success": False, "error": error}),
    )
