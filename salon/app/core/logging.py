"""
JSON log output for the salon backend.

Every record is one JSON object on stdout. Request and event identifiers
bound with ``log_context`` are attached to all records emitted inside it,
including records from background handlers processing that request's events.
Structured fields go through ``extra={"extra_data": {...}}``.
"""

import json
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional

correlation_id_ctx: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)
event_id_ctx: ContextVar[Optional[str]] = ContextVar("event_id", default=None)

_CONTEXT_FIELDS = (
    ("correlation_id", correlation_id_ctx),
    ("event_id", event_id_ctx),
)

# Libraries whose own loggers are too chatty at INFO.
_QUIET_LOGGERS = ("httpx", "aiosqlite", "sqlalchemy.engine", "asyncio")


@contextmanager
def log_context(correlation_id: Optional[str], event_id: Optional[str]) -> Iterator[None]:
    """Bind request/event ids for the duration of the block."""
    tokens = [
        (correlation_id_ctx, correlation_id_ctx.set(correlation_id)),
        (event_id_ctx, event_id_ctx.set(event_id)),
    ]
    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)


class JSONFormatter(logging.Formatter):
    def __init__(self, service: str = "salon-backend"):
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "service": self.service,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }

        for field, var in _CONTEXT_FIELDS:
            value = var.get()
            if value:
                entry[field] = value

        extra = getattr(record, "extra_data", None)
        if isinstance(extra, dict):
            entry.update(extra)

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def setup_logging(level: str = "INFO", service: str = "salon-backend") -> None:
    """Route the root logger to stdout through ``JSONFormatter``."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter(service=service))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level.upper())

    # TracingMiddleware already logs one line per request.
    logging.getLogger("uvicorn.access").disabled = True
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
