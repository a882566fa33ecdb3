"""Translate service errors into JSON:API style error documents."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from mealtickets.core.errors import TicketingError, TicketInternalError

logger = logging.getLogger(__name__)


def error_document(*errors: dict[str, str]) -> dict[str, list[dict[str, str]]]:
    return {"errors": list(errors)}


async def ticketing_error_handler(request: Request, exc: TicketingError) -> JSONResponse:
    if isinstance(exc, TicketInternalError):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail, exc_info=exc)
    else:
        logger.info("%s %s rejected: %s (%s)", request.method, request.url.path, exc.code, exc.detail)
    return JSONResponse(status_code=exc.status_code, content=error_document(exc.to_error_object()))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "code": "INVALID_REQUEST",
            "status": str(status.HTTP_400_BAD_REQUEST),
            "title": "Invalid request",
            "detail": f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg', 'invalid value')}",
        }
        for error in exc.errors()
    ]
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=error_document(*errors))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    internal = TicketInternalError()
    return JSONResponse(status_code=internal.status_code, content=error_document(internal.to_error_object()))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TicketingError, ticketing_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
