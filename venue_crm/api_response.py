"""Response envelope shared by every endpoint"""

from datetime import datetime, timezone
from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _encode(data: Any) -> Any:
    # Pydantic's JSON mode keeps Decimal as an exact string ("950.00")
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json")
    if isinstance(data, list):
        return [_encode(item) for item in data]
    if isinstance(data, dict):
        return {key: _encode(value) for key, value in data.items()}
    return jsonable_encoder(data)


def success_response(
    data: Any = None,
    status_code: int = 200,
    message: Optional[str] = None,
    headers: Optional[dict[str, str]] = None,
) -> JSONResponse:
    content: dict[str, Any] = {"success": True}
    if data is not None:
        content["data"] = _encode(data)
    if message:
        content["message"] = message
    content["timestamp"] = utc_timestamp()
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def created_response(data: Any) -> JSONResponse:
    return success_response(data, status_code=201)


def paginated_response(result: dict) -> JSONResponse:
    """Wrap a paginated result and expose totals as headers."""
    pagination = result["pagination"]
    headers = {
        "X-Total-Count": str(pagination["total"]),
        "X-Page-Count": str(pagination["totalPages"]),
    }
    return success_response(result, headers=headers)


def error_response(
    code: str,
    message: str,
    status_code: int = 500,
    field: Optional[str] = None,
    details: Any = None,
    path: Optional[str] = None,
    headers: Optional[dict[str, str]] = None,
) -> JSONResponse:
    error: dict[str, Any] = {"code": code, "message": message}
    if field:
        error["field"] = field
    if details is not None:
        error["details"] = jsonable_encoder(details)

    content: dict[str, Any] = {"success": False, "error": error, "timestamp": utc_timestamp()}
    if path:
        content["path"] = path
    return JSONResponse(status_code=status_code, content=content, headers=headers)
