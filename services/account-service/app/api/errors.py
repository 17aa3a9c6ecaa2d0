"""Render account failures as ``{"success": false, "message": ...}`` responses."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..domain.errors import (
    AccountError,
    ConflictError,
    ForbiddenError,
    MalformedInputError,
    NotFoundError,
    StorageError,
    ValidationError,
)

logger = logging.getLogger(__name__)

MALFORMED_BODY_MESSAGE = "Malformed JSON in request body"
UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred"

_STATUS_BY_ERROR: tuple[tuple[type[AccountError], int], ...] = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (MalformedInputError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_400_BAD_REQUEST),
    (ForbiddenError, status.HTTP_400_BAD_REQUEST),
    (ConflictError, status.HTTP_409_CONFLICT),
    (StorageError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def status_for(exc: AccountError) -> int:
    """Map a domain failure onto the HTTP status the API reports for it."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_400_BAD_REQUEST


def _error_payload(message: str) -> dict[str, object]:
    return {"success": False, "message": message}


async def account_error_handler(request: Request, exc: AccountError) -> JSONResponse:
    status_code = status_for(exc)
    if isinstance(exc, StorageError):
        logger.error("storage failure on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=status_code, content=_error_payload(exc.message))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("rejected malformed request body on %s", request.url.path)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_payload(MALFORMED_BODY_MESSAGE),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_payload(UNEXPECTED_ERROR_MESSAGE),
    )


def install_error_handlers(app: FastAPI) -> None:
    """Register the envelope handlers on ``app``."""
    app.add_exception_handler(AccountError, account_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
