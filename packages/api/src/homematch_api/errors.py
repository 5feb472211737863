"""Service-level exceptions and their HTTP mapping.

Services raise these instead of HTTPException so they stay usable outside
a request. The app factory registers ``install_error_handlers`` which turns
them, and every HTTPException, into ``error_response`` bodies.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from starlette.exceptions import HTTPException
from starlette.responses import JSONResponse

from homematch_api.responses import error_response

log = structlog.get_logger(__name__)

STATUS_CODES: dict[int, str] = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    429: "RATE_LIMIT_EXCEEDED",
    500: "INTERNAL_ERROR",
    503: "SERVICE_UNAVAILABLE",
}


class ServiceError(Exception):
    """Base class for errors raised by the service layer."""

    status_code = 500

    def __init__(self, message: str, *, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(ServiceError):
    status_code = 400


class HouseholdNotFoundError(ServiceError):
    status_code = 404

    def __init__(self, message: str = "No household found") -> None:
        super().__init__(message)


class NotFoundError(ServiceError):
    status_code = 404


class FeatureUnavailableError(ServiceError):
    status_code = 503


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(HTTPException)
    async def _http_exception(request: Request, exc: HTTPException) -> JSONResponse:
        code = STATUS_CODES.get(exc.status_code, "ERROR")
        message = exc.detail if isinstance(exc.detail, str) else code.replace("_", " ").capitalize()
        return JSONResponse(
            status_code=exc.status_code,
            content=error_response(code, message),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content=error_response(
                "BAD_REQUEST",
                "Invalid request data",
                details=jsonable_encoder(exc.errors()),
            ),
        )

    @app.exception_handler(ServiceError)
    async def _service_error(request: Request, exc: ServiceError) -> JSONResponse:
        if exc.status_code >= 500:
            log.error("service_error", path=request.url.path, error=exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_response(
                STATUS_CODES.get(exc.status_code, "ERROR"),
                exc.message,
                details=exc.details,
            ),
        )

    @app.exception_handler(Exception)
    async def _unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        log.error(
            "unhandled_error",
            path=request.url.path,
            error=str(exc),
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content=error_response("INTERNAL_ERROR", "Internal server error"),
        )
