"""
JSON response envelope and error handling.

Every response has the same shape:

    success: {"success": true, "data": ...}
    error:   {"success": false, "error": {"code", "message", "details"?}}

Routes raise ApiError; the handlers registered here render it. Raw
exception text (ApiError.debug) is only shown outside production.
"""

import logging
from http import HTTPStatus
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """
    An error with a stable wire code.

    details is always sent (field errors, for example). debug carries raw
    exception text and is dropped in production.
    """

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: Optional[Any] = None,
        debug: Optional[str] = None,
    ) -> None:
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details
        self.debug = debug
        super().__init__(f"{code}: {message}")


def success_response(data: Any, status_code: int = 200) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": True, "data": data})


def error_response(
    status_code: int,
    code: str,
    message: str,
    details: Optional[Any] = None,
) -> JSONResponse:
    error: dict[str, Any] = {"code": code, "message": message}
    if details is not None:
        error["details"] = details
    return JSONResponse(status_code=status_code, content={"success": False, "error": error})


def _is_production(request: Request) -> bool:
    settings = getattr(request.app.state, "settings", None)
    return settings is not None and settings.is_production


# ---------------------------------------------------------------------------
# Exception Handlers
# ---------------------------------------------------------------------------

async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    details = exc.details
    if details is None and exc.debug is not None and not _is_production(request):
        details = exc.debug
    return error_response(exc.status_code, exc.code, exc.message, details)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Unknown routes, wrong methods and the like, in the same envelope."""
    code = HTTPStatus(exc.status_code).phrase.upper().replace(" ", "_")
    response = error_response(exc.status_code, code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    field_errors: dict[str, list[str]] = {}
    for error in exc.errors():
        loc = [str(part) for part in error["loc"] if part not in ("body", "query", "path")]
        field_errors.setdefault(".".join(loc) or "_", []).append(error["msg"])
    return error_response(400, "INVALID_REQUEST", "Invalid request", field_errors)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Catch-all exception handler.

    In production, this prevents stack traces from leaking to clients.
    We log the full error server-side but return a generic message.
    """
    logger.error(
        "Unhandled exception",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error": str(exc),
        },
        exc_info=exc,
    )
    details = None if _is_production(request) else str(exc)
    return error_response(500, "INTERNAL_ERROR", "Internal server error", details)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
