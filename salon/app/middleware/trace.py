import time
import uuid
import logging

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from salon.app.core.logging import log_context

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"
EVENT_HEADER = "X-Event-ID"


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


class TracingMiddleware(BaseHTTPMiddleware):
    """
    Tags each request with a correlation id (taken from the caller when
    present) and a fresh event id, writes one log line per request and
    returns both ids as response headers.
    """
    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get(CORRELATION_HEADER) or uuid.uuid4().hex
        event_id = uuid.uuid4().hex
        request.state.correlation_id = correlation_id
        fields = {"method": request.method, "path": request.url.path}

        with log_context(correlation_id, event_id):
            started = time.perf_counter()
            try:
                response = await call_next(request)
            except Exception as exc:
                logger.error(
                    f"{request.method} {request.url.path} raised {type(exc).__name__}",
                    extra={"extra_data": {**fields, "status_code": 500, "duration_ms": _elapsed_ms(started)}},
                    exc_info=True,
                )
                raise

            level = logging.WARNING if response.status_code >= 500 else logging.INFO
            logger.log(
                level,
                f"{request.method} {request.url.path} -> {response.status_code}",
                extra={"extra_data": {
                    **fields,
                    "status_code": response.status_code,
                    "duration_ms": _elapsed_ms(started),
                    "client_ip": request.client.host if request.client else None,
                }},
            )

        response.headers[CORRELATION_HEADER] = correlation_id
        response.headers[EVENT_HEADER] = event_id
        return response
