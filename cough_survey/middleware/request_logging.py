"""
Per-request logging and X-Request-ID correlation.
"""
import logging
import time
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from cough_survey.core.logging_config import request_id_context

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Polled by load balancers; only logged when they fail
QUIET_PATHS = ("/health", "/ping")


def outcome_level(status_code: int, quiet: bool = False) -> int:
    """Log level for a finished request: 5xx error, 4xx warning, else info."""
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.DEBUG if quiet else logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log one line per request and tag every log record emitted while serving
    it with the same request id.

    A client or proxy may supply the id in X-Request-ID; otherwise one is
    generated. The id is echoed back on the response so a participant's
    bug report can be matched to the server log.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        token = request_id_context.set(request_id)
        started = time.perf_counter()
        path = request.url.path

        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            logger.log(
                outcome_level(response.status_code, quiet=path.endswith(QUIET_PATHS)),
                f"{request.method} {path} -> {response.status_code}",
                extra={
                    "method": request.method,
                    "path": path,
                    "status_code": response.status_code,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                    "client_host": request.client.host if request.client else "unknown",
                },
            )
            return response
        finally:
            request_id_context.reset(token)
