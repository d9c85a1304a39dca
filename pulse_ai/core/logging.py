"""Logging setup and request ID propagation.

Every log line emitted while a request is being served carries the request's
``X-Request-ID`` so chat failures and model fallbacks can be traced back to a
single call.
"""

from __future__ import annotations

import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from typing import Any

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp

REQUEST_ID_HEADER = "X-Request-ID"

_request_id_ctx_var: ContextVar[str | None] = ContextVar("request_id", default=None)

_PLAIN_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def get_request_id() -> str | None:
    return _request_id_ctx_var.get()


class JsonFormatter(logging.Formatter):
    """One JSON object per line with level, message, time, logger and request_id."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "level": record.levelname,
            "message": record.getMessage(),
            "time": int(time.time()),
            "logger": record.name,
        }
        req_id = get_request_id()
        if req_id:
            payload["request_id"] = req_id
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(level: str = "INFO", json_output: bool = True) -> None:
    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)
    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(JsonFormatter() if json_output else logging.Formatter(_PLAIN_FORMAT))
    root.addHandler(handler)
    root.setLevel(level.upper())


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Attach a request ID to each request and log one line per response."""

    def __init__(self, app: ASGIApp, header_name: str = REQUEST_ID_HEADER) -> None:
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        req_id = request.headers.get(self.header_name) or str(uuid.uuid4())
        token = _request_id_ctx_var.set(req_id)
        request.state.request_id = req_id
        start = time.time()
        try:
            response = await call_next(request)
            duration_ms = int((time.time() - start) * 1000)
            logging.getLogger("pulse_ai.http").info(
                "[HTTP] %s %s status=%d duration_ms=%d",
                request.method,
                request.url.path,
                response.status_code,
                duration_ms,
            )
        finally:
            _request_id_ctx_var.reset(token)
        response.headers[self.header_name] = req_id
        return response
