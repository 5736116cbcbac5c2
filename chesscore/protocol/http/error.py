from __future__ import annotations

import logging
from typing import Any, Dict, cast

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException

from ...engine.errors import (
    ChessError,
    GameOverError,
    IllegalMove,
    NothingToUndo,
    SearchAlreadyRunning,
)

logger = logging.getLogger(__name__)


def error_envelope(
    *,
    code: str,
    message: str,
    err_type: str,
    request_id: str,
    field_errors: list[dict[str, str]] | None = None,
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "error": {
            "code": code,
            "message": message,
            "type": err_type,
            "request_id": request_id,
        }
    }
    if field_errors:
        payload["error"]["field_errors"] = field_errors
    return payload


def _envelope_response(request: Request, status_code: int, message: str, code: str | None = None) -> JSONResponse:
    payload = error_envelope(
        code=code or _status_to_code(status_code),
        message=message,
        err_type="client_error" if 400 <= status_code < 500 else "server_error",
        request_id=getattr(request.state, "request_id", ""),
    )
    return JSONResponse(status_code=status_code, content=payload)


async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    if isinstance(exc, StarletteHTTPException):
        detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
        return _envelope_response(request, exc.status_code, detail)
    return await exception_handler(request, exc)


async def chess_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render rejected engine operations; game state is unchanged by these."""
    err = cast(ChessError, exc)
    status_code, code = chess_error_status(err)
    logger.info(
        "rejected: %s",
        err,
        extra={"request_id": getattr(request.state, "request_id", ""), "code": code},
    )
    return _envelope_response(request, status_code, str(err), code)


async def exception_handler(request: Request, exc: Exception) -> JSONResponse:
    if isinstance(exc, StarletteHTTPException):
        return await http_exception_handler(request, exc)
    if isinstance(exc, ChessError):
        return await chess_error_handler(request, exc)
    request_id = getattr(request.state, "request_id", "")
    logger.exception("Unhandled exception", extra={"request_id": request_id})
    return _envelope_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Internal Server Error",
    )


async def request_validation_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    request_id = getattr(request.state, "request_id", "")
    errors = []
    rve = cast(RequestValidationError, exc)
    for e in rve.errors():
        loc = ".".join(str(p) for p in e.get("loc", []) if p is not None)
        errors.append(
            {
                "field": loc,
                "code": e.get("type", "value_error"),
                "message": e.get("msg", "invalid value"),
            }
        )
    payload = error_envelope(
        code="unprocessable_entity",
        message="Validation error",
        err_type="client_error",
        request_id=request_id,
        field_errors=errors or None,
    )
    return JSONResponse(status_code=422, content=payload)


def chess_error_status(err: ChessError) -> tuple[int, str]:
    if isinstance(err, IllegalMove):
        return status.HTTP_400_BAD_REQUEST, "illegal_move"
    if isinstance(err, NothingToUndo):
        return status.HTTP_400_BAD_REQUEST, "nothing_to_undo"
    if isinstance(err, GameOverError):
        return status.HTTP_409_CONFLICT, "game_over"
    if isinstance(err, SearchAlreadyRunning):
        return status.HTTP_409_CONFLICT, "search_running"
    return status.HTTP_400_BAD_REQUEST, "bad_request"


def _status_to_code(status_code: int) -> str:
    codes = {
        400: "bad_request",
        404: "not_found",
        405: "method_not_allowed",
        409: "conflict",
        422: "unprocessable_entity",
    }
    if status_code in codes:
        return codes[status_code]
    if 500 <= status_code < 600:
        return "internal_error"
    return "error"
