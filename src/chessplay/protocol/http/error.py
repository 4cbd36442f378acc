from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, cast

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status
from starlette.exceptions import HTTPException

from ...engine.game import GameOverError


logger = logging.getLogger(__name__)

_STATUS_CODES = {
    status.HTTP_400_BAD_REQUEST: "bad_request",
    status.HTTP_404_NOT_FOUND: "not_found",
    status.HTTP_405_METHOD_NOT_ALLOWED: "method_not_allowed",
    status.HTTP_409_CONFLICT: "conflict",
    422: "unprocessable_entity",
}


def error_envelope(
    *,
    code: str,
    message: str,
    err_type: str,
    request_id: str,
    field_errors: Optional[List[Dict[str, str]]] = None,
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


def _render(
    request: Request,
    status_code: int,
    message: str,
    field_errors: Optional[List[Dict[str, str]]] = None,
) -> JSONResponse:
    payload = error_envelope(
        code=status_to_code(status_code),
        message=message,
        err_type="client_error" if 400 <= status_code < 500 else "server_error",
        request_id=getattr(request.state, "request_id", ""),
        field_errors=field_errors,
    )
    return JSONResponse(status_code=status_code, content=payload)


async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    http_exc = cast(HTTPException, exc)
    detail = http_exc.detail if isinstance(http_exc.detail, str) else str(http_exc.detail)
    return _render(request, http_exc.status_code, detail)


async def game_over_handler(request: Request, exc: Exception) -> JSONResponse:
    return _render(request, status.HTTP_409_CONFLICT, str(exc) or "game is over")


async def value_error_handler(request: Request, exc: Exception) -> JSONResponse:
    # Domain input errors (bad FEN, illegal move, empty history) are client errors.
    return _render(request, status.HTTP_400_BAD_REQUEST, str(exc) or "bad request")


async def request_validation_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
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
    return _render(request, 422, "Validation error", errors or None)


async def exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled exception", extra={"request_id": getattr(request.state, "request_id", "")}
    )
    return _render(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error")


def register_error_handlers(app: Any) -> None:
    # Order does not matter: Starlette picks the most specific class in the MRO.
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(GameOverError, game_over_handler)
    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(Exception, exception_handler)


def status_to_code(status_code: int) -> str:
    if status_code in _STATUS_CODES:
        return _STATUS_CODES[status_code]
    if 500 <= status_code < 600:
        return "internal_error"
    return "error"
