"""Folio response envelopes and the exception handlers that produce them.

Reader clients see two shapes only:
- Success: { "data": ... }, where data is one highlight, a keyed collection
  ({"highlights": [...]}, {"issues": [...]}, {"paragraphs": [...]}) or a
  small summary such as {"deleted": n}
- Error: { "error": { "code": "E_...", "message": "...", "request_id": "..." } }

Highlight failures arrive here as ApiError subclasses raised by the service
layer (E_HIGHLIGHT_NOT_FOUND, E_HIGHLIGHT_INVALID_RANGE, E_STORAGE_ERROR).
Framework errors (unknown route, wrong method, bad query value) are folded
into the generic codes so clients never see FastAPI's default body.
"""

from collections.abc import Iterable
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from folio.errors import ApiError, ApiErrorCode
from folio.logging import get_logger, get_request_id

logger = get_logger(__name__)

# Starlette HTTPException status -> envelope code; anything else is E_INTERNAL
HTTP_STATUS_TO_CODE = {
    400: ApiErrorCode.E_INVALID_REQUEST,
    404: ApiErrorCode.E_NOT_FOUND,
    405: ApiErrorCode.E_INVALID_REQUEST,
    422: ApiErrorCode.E_INVALID_REQUEST,
}


def success_response(data: Any) -> dict[str, Any]:
    """Wrap already-serialized data in the success envelope."""
    return {"data": data}


def model_response(model: BaseModel) -> dict[str, Any]:
    """Envelope a single schema object (a highlight, stats) as JSON-ready data."""
    return success_response(model.model_dump(mode="json"))


def collection_response(key: str, models: Iterable[BaseModel]) -> dict[str, Any]:
    """Envelope schema objects under one key, preserving their order.

    Ordering is the service's contract (paragraph order for highlights and
    rendered paragraphs), so nothing is re-sorted here.
    """
    return success_response({key: [m.model_dump(mode="json") for m in models]})


def error_response(
    code: ApiErrorCode, message: str, request_id: str | None = None
) -> dict[str, Any]:
    """Create an error response envelope.

    Args:
        code: The error code enum value.
        message: Human-readable error message.
        request_id: Correlation id. Taken from the request context when None;
            omitted when there is no request in flight.

    Returns:
        Dict with "error" key containing code, message, and request_id.
    """
    if request_id is None:
        request_id = get_request_id()

    error = {"code": code.value, "message": message}
    if request_id:
        error["request_id"] = request_id

    return {"error": error}


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    """Render service-layer errors; storage failures are logged, 4xx are not."""
    if exc.status_code >= 500:
        logger.error("api_error", code=exc.code.value, message=exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(exc.code, exc.message),
    )


async def http_exception_handler(request: Request, exc: Any) -> JSONResponse:
    """Render routing errors (unknown path, wrong method) in the error envelope."""
    code = HTTP_STATUS_TO_CODE.get(exc.status_code, ApiErrorCode.E_INTERNAL)
    message = str(exc.detail) if exc.detail else "An error occurred"
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(code, message),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return 500 E_INTERNAL for anything that escaped the service layer.

    The traceback goes to the log with the request and article context bound;
    the client only gets the request_id to quote.
    """
    logger.exception("unhandled_exception", error_type=type(exc).__name__)

    return JSONResponse(
        status_code=500,
        content=error_response(ApiErrorCode.E_INTERNAL, "Internal server error"),
    )
