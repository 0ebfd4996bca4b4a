"""Error taxonomy shared by services and its translation into HTTP responses."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ServiceDeskError(Exception):
    """Base class for errors that are reported back to the caller."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ServiceDeskError):
    """Missing or malformed input."""

    status_code = 400


class Unauthenticated(ServiceDeskError):
    """Missing, invalid or expired session token."""

    status_code = 401


class Forbidden(ServiceDeskError):
    """Caller lacks the role, or tried to modify their own account."""

    status_code = 403


class NotFound(ServiceDeskError):
    status_code = 404


class RateLimited(ServiceDeskError):
    """Login name is temporarily locked after repeated failures."""

    status_code = 429

    def __init__(self, message: str, *, retry_after_minutes: int) -> None:
        super().__init__(message)
        self.retry_after_minutes = retry_after_minutes


class ServiceUnavailable(ServiceDeskError):
    """A service was not wired into the application."""

    status_code = 503


class Conflict(ServiceDeskError):
    """Duplicate unique key.

    Reported as 400 to keep the responses existing clients already handle.
    """

    status_code = 400


async def _service_error_handler(request: Request, exc: ServiceDeskError) -> JSONResponse:
    headers: dict[str, str] = {}
    if isinstance(exc, Unauthenticated):
        headers["WWW-Authenticate"] = "Bearer"
    if isinstance(exc, RateLimited):
        headers["Retry-After"] = str(exc.retry_after_minutes * 60)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message}, headers=headers)


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"detail": "Invalid request payload", "errors": jsonable_encoder(exc.errors())},
    )


async def _storage_error_handler(request: Request, exc: OSError) -> JSONResponse:
    logger.error("Storage failure while handling %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Storage failure"})


def install_exception_handlers(app: FastAPI) -> None:
    """Register the JSON error translators on ``app``."""

    app.add_exception_handler(ServiceDeskError, _service_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(OSError, _storage_error_handler)
