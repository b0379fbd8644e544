"""Structured logging and request correlation for the substitution API.

Every log line is one JSON object. Lines emitted while a request is being
served carry that request's id, taken from the incoming request-id header or
generated when the client sent none, and echoed back on the response.
"""

from __future__ import annotations

import contextvars
import json
import logging
import sys
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Callable, Iterator, Optional
from uuid import uuid4

from fastapi import FastAPI, Request, Response

_request_id: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("request_id", default=None)
_installed_handler: Optional[logging.Handler] = None
_RESERVED_ATTRS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}

# Library loggers held at WARNING whatever the service level is
_NOISY_LIBRARIES = ("httpx", "httpcore", "sqlalchemy.engine", "alembic.runtime.migration")

request_logger = logging.getLogger("api.requests")


def current_request_id() -> Optional[str]:
    return _request_id.get()


@contextmanager
def bound_request_id(value: str) -> Iterator[str]:
    token = _request_id.set(value)
    try:
        yield value
    finally:
        _request_id.reset(token)


def clock_ms() -> float:
    return time.perf_counter() * 1000.0


class JsonFormatter(logging.Formatter):
    """Renders ts, level, logger, message, request_id, exc_info and every ``extra=`` field."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        request_id = current_request_id()
        if request_id:
            payload["request_id"] = request_id
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        payload.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RESERVED_ATTRS and not key.startswith("_") and key not in payload
        )
        return json.dumps(payload, default=str, separators=(",", ":"))


def configure_logging(level: str = "INFO") -> None:
    """Route the root logger (and uvicorn's) through one JSON stdout handler.

    Safe to call once per app: the handler is installed the first time and
    later calls only change the level.
    """
    global _installed_handler
    root = logging.getLogger()
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    if _installed_handler is not None:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    root.handlers = [handler]
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).handlers = []
        logging.getLogger(name).propagate = True
    for name in _NOISY_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)
    _installed_handler = handler


def install_request_logging(app: FastAPI, header_name: str = "X-Request-ID") -> None:
    """Bind a request id around each request and log one ``http_request`` line per response."""

    def fields(request: Request, status_code: int, started_ms: float) -> dict[str, object]:
        return {
            "method": request.method,
            "path": request.url.path,
            "status_code": status_code,
            "duration_ms": round(clock_ms() - started_ms, 2),
            "client_ip": getattr(request.client, "host", None) or "",
        }

    @app.middleware("http")
    async def request_context(request: Request, call_next: Callable) -> Response:
        request_id = (request.headers.get(header_name) or "").strip() or uuid4().hex
        started_ms = clock_ms()
        with bound_request_id(request_id):
            try:
                response = await call_next(request)
            except Exception:
                request_logger.exception("http_request_error", extra=fields(request, 500, started_ms))
                raise
            response.headers[header_name] = request_id
            request_logger.info("http_request", extra=fields(request, response.status_code, started_ms))
            return response
