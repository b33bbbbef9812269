"""
Error responses for the REST API.

Errors raised by routes and services carry their HTTP status and are rendered
as ``{"error": message}``.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from dealer_voice.config.constants import LOGGER_NAME
from dealer_voice.services.errors import ServiceError

logger = logging.getLogger(LOGGER_NAME)


class ApiError(ServiceError):
    """Raised by routes for request-level failures (auth, bad input)."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message, status_code=status_code)


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


def register_error_handlers(app: FastAPI) -> None:
    # Subclasses (ApiError, SignupError, NotFoundError) resolve to this handler
    app.add_exception_handler(ServiceError, service_error_handler)
