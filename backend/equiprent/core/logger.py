"""JSON logging to stdout, tagged with the request id of the current request."""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from flask import Flask, Response, g, has_request_context, request

REQUEST_ID_HEADER = "X-Request-ID"
_INBOUND_ID_HEADERS = (REQUEST_ID_HEADER, "X-Correlation-ID")

# Record attributes copied into the JSON line when set via ``extra=``.
_PROMOTED_FIELDS = ("event", "user_id", "sessions", "ip", "endpoint", "elapsed_ms")


def ensure_request_id() -> str:
    """
    Request id for the current request, stored on ``g`` after the first call.

    Reuses an inbound ``X-Request-ID``/``X-Correlation-ID`` header when the
    client sent one. Outside a request a fresh UUID is returned each time.
    """
    if not has_request_context():
        return str(uuid4())
    rid = g.get("request_id")
    if rid is None:
        inbound = (request.headers.get(h) for h in _INBOUND_ID_HEADERS)
        rid = next((v for v in inbound if v), None) or str(uuid4())
        g.request_id = rid
    return rid


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        line: dict[str, Any] = {
            "time": datetime.now(UTC).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
        }
        line.update({k: getattr(record, k) for k in _PROMOTED_FIELDS if hasattr(record, k)})
        if record.exc_info:
            line["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(line, default=str)


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = ensure_request_id() if has_request_context() else None
        return True


def log_event(logger: logging.Logger, event: str, *, level: int = logging.INFO, **fields: Any) -> None:
    """Log ``event`` as the message with ``fields`` attached as record attributes.

    >>> log_event(log, "auth.logout_all", user_id=7, sessions=3)  # doctest: +SKIP
    """
    logger.log(level, event, extra={"event": event, **fields})


def configure_logging(level: str | int = "INFO") -> None:
    """Replace root handlers with a single JSON stdout handler at ``level``."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    handler.addFilter(RequestIdFilter())

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level.upper() if isinstance(level, str) else level)


def init_app(app: Flask) -> None:
    """Assign a request id before each request and echo it on the response."""
    app.logger.addFilter(RequestIdFilter())

    @app.before_request
    def _assign_request_id() -> None:
        ensure_request_id()

    @app.after_request
    def _echo_request_id(response: Response) -> Response:
        response.headers.setdefault(REQUEST_ID_HEADER, ensure_request_id())
        return response


__all__ = ["REQUEST_ID_HEADER", "configure_logging", "ensure_request_id", "init_app", "log_event"]
