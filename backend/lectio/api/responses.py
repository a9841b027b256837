"""API response envelope helpers and exception handlers.

All API responses use a consistent envelope:
- Success: { "success": true, "data": ..., "message": "..." }
- Error: { "success": false, "error": "...", "details": ... }
"""

import logging
import traceback
from typing import Any, TypeVar

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from lectio.config import get_settings
from lectio.errors import AppError, UpstreamError
from lectio.schemas.base import ApiResponse, ErrorResponse

logger = logging.getLogger(__name__)

T = TypeVar("T")


def success(data: T, message: str | None = None) -> ApiResponse[T]:
    """Wrap route data in the success envelope."""
    return ApiResponse(data=data, message=message)


def error_response(status_code: int, error: str, details: Any = None) -> JSONResponse:
    body = ErrorResponse(error=error, details=details).model_dump(exclude_none=True)
    return JSONResponse(status_code=status_code, content=body)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle AppError subclasses raised by routes and services."""
    if isinstance(exc, UpstreamError):
        logger.error("Upstream failure on %s %s: %s", request.method, request.url.path, exc.message)
    return error_response(exc.status_code, exc.message, exc.details)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Turn request validation failures into 400 with per-field messages."""
    details = [
        {
            "path": ".".join(str(part) for part in error["loc"] if part != "body"),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    return error_response(400, "Validation Error", details)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Wrap framework HTTP errors (unknown route, wrong method) in the envelope."""
    message = str(exc.detail) if exc.detail else "An error occurred"
    response = error_response(exc.status_code, message)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return 500; the stack trace is only exposed outside production."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)

    if get_settings().environment == "production":
        return error_response(500, "Internal Server Error")
    stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return error_response(500, str(exc) or "Internal Server Error", {"stack": stack})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
