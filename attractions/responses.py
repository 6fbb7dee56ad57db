from typing import Any, Optional

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def envelope(success: bool, message: str, data: Any = None) -> dict:
    """Build the standard response body"""
    return {
        "success": success,
        "message": message,
        "data": data if data is not None else {},
    }


def send_response(
    success: bool,
    status_code: int = status.HTTP_200_OK,
    message: str = "",
    data: Any = None,
) -> JSONResponse:
    """Wrap data in the envelope with the given HTTP status"""
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(envelope(success, message, data)),
    )


def get_tracking_id(request: Optional[Request]) -> str:
    """Correlation id supplied by the caller, if any"""
    if request is None:
        return ""
    return request.headers.get("x-correlation-id", "")
