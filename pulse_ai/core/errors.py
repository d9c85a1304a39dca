"""Domain exceptions and the FastAPI handlers that shape them into JSON.

Handlers return ``{error, detail, status, request_id}`` and never leak stack
traces; the full exception is only logged.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from pulse_ai.core.logging import REQUEST_ID_HEADER, get_request_id

logger = logging.getLogger(__name__)


class PulseAIError(RuntimeError):
    """Base class for errors raised by the service layer."""


class ResourceNotFoundError(PulseAIError):
    def __init__(self, resource_id: str) -> None:
        super().__init__(f"Resource '{resource_id}' was not found.")
        self.resource_id = resource_id


class ResourceStoreError(PulseAIError):
    """The knowledge store could not be read or written."""


class ContentGenerationError(PulseAIError):
    """Every generation model attempt failed."""


def _payload(message: str, status: int, detail: Any | None, request: Request) -> dict[str, Any]:
    request_id = (
        getattr(request.state, "request_id", None)
        or request.headers.get(REQUEST_ID_HEADER)
        or get_request_id()
    )
    return {"error": message, "detail": detail, "status": status, "request_id": request_id}


async def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:
    logger.info("[HTTPException] status=%s detail=%s", exc.status_code, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=_payload("HTTPException", exc.status_code, exc.detail, request),
    )


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("[ValidationError] errors=%s", exc.errors())
    return JSONResponse(
        status_code=422,
        content=_payload("ValidationError", 422, jsonable_errors(exc), request),
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]


async def handle_not_found(request: Request, exc: ResourceNotFoundError) -> JSONResponse:
    return JSONResponse(
        status_code=404,
        content=_payload("ResourceNotFound", 404, str(exc), request),
    )


async def handle_store_error(request: Request, exc: ResourceStoreError) -> JSONResponse:
    logger.error("[ResourceStoreError] %s", exc)
    return JSONResponse(
        status_code=503,
        content=_payload("ResourceStoreUnavailable", 503, "The resource store is unavailable.", request),
    )


async def handle_unhandled_exception(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("[UnhandledException] path=%s", request.url.path)
    return JSONResponse(
        status_code=500,
        content=_payload("InternalServerError", 500, "An unexpected error occurred.", request),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(ResourceNotFoundError, handle_not_found)
    app.add_exception_handler(ResourceStoreError, handle_store_error)
    app.add_exception_handler(Exception, handle_unhandled_exception)
