"""
Structured logging for the consent service.

One JSON object per log line, tagged with the id of the request being
served. The access log records whether a consent cookie came with the
request, never its content.
"""

import json
import logging
import time
import uuid
from collections.abc import Callable
from contextvars import ContextVar
from datetime import datetime, timezone

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from cookie_consent.config import settings

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

ACCESS_LOGGER = "consent.access"
UNLOGGED_PATHS = frozenset({"/health"})

# Attributes every LogRecord has; anything else was passed through `extra`
_RECORD_ATTRIBUTES = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "request_id"}


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get("")
        return True


class StructuredFormatter(logging.Formatter):
    """Render records as JSON, carrying over any `extra` fields."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", ""),
        }
        entry.update({key: value for key, value in vars(record).items() if key not in _RECORD_ATTRIBUTES})
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


def _consent_cookie_name(request: Request) -> str:
    app_settings = getattr(request.app.state, "settings", None) or settings
    return app_settings.consent_cookie_name


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """Access log line per request; the request id is echoed in X-Request-ID."""

    def __init__(self, app: ASGIApp, logger_name: str = ACCESS_LOGGER):
        super().__init__(app)
        self.logger = logging.getLogger(logger_name)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        request_id_var.set(request_id)
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            self._log_access(request, 500, started, error=e)
            raise

        response.headers["X-Request-ID"] = request_id
        self._log_access(request, response.status_code, started)
        return response

    def _log_access(self, request: Request, status_code: int, started: float, error: Exception | None = None) -> None:
        if request.url.path in UNLOGGED_PATHS:
            return

        duration_ms = round((time.perf_counter() - started) * 1000, 2)
        message = f"{request.method} {request.url.path} {status_code} {duration_ms}ms"
        if error is not None:
            message = f"{message} ({type(error).__name__}: {error})"

        self.logger.log(
            _level_for(status_code),
            message,
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": status_code,
                "duration_ms": duration_ms,
                "has_consent_cookie": _consent_cookie_name(request) in request.cookies,
            },
        )


def setup_structured_logging(log_level: str = "INFO", json_format: bool = True) -> None:
    """
    Configure the root logger for the service.

    Args:
        log_level: DEBUG, INFO, WARNING or ERROR
        json_format: JSON lines when True, plain text otherwise
    """
    level = getattr(logging, log_level.upper())

    handler = logging.StreamHandler()
    handler.addFilter(RequestIdFilter())
    if json_format:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s [%(request_id)s] %(message)s"))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    logging.getLogger("cookie_consent").setLevel(level)
    logging.getLogger(ACCESS_LOGGER).setLevel(level)
    for noisy in ("uvicorn", "uvicorn.access", "sqlalchemy.engine"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
