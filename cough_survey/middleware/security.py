"""
Security middleware for response headers and request size limits.
"""
import json

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
from typing import Callable

from cough_survey.core.error_responses import ErrorMessages


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Add defensive headers to every API response.

    The API serves JSON and CSV only, so the content security policy
    forbids scripts and framing outright.
    """

    CSP_DIRECTIVES = (
        "default-src 'none'",
        "frame-ancestors 'none'",
        "base-uri 'none'",
        "form-action 'none'",
    )

    def __init__(
        self,
        app: ASGIApp,
        hsts_enabled: bool = True,
        hsts_max_age: int = 31536000,  # 1 year
    ):
        """
        Args:
            app: ASGI application
            hsts_enabled: Send Strict-Transport-Security (production only)
            hsts_max_age: HSTS max age in seconds
        """
        super().__init__(app)
        self.hsts_enabled = hsts_enabled
        self.hsts_max_age = hsts_max_age

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "no-referrer"
        response.headers["Content-Security-Policy"] = "; ".join(self.CSP_DIRECTIVES)

        if self.hsts_enabled:
            response.headers[
                "Strict-Transport-Security"
            ] = f"max-age={self.hsts_max_age}; includeSubDomains"

        return response


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """
    Reject requests whose declared body exceeds the configured size.

    Survey payloads are a few hundred bytes; anything near the limit is
    not a legitimate client.
    """

    def __init__(self, app: ASGIApp, max_body_size: int = 1024 * 1024):
        super().__init__(app)
        self.max_body_size = max_body_size

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit():
            if int(content_length) > self.max_body_size:
                body = {
                    "detail": ErrorMessages.request_too_large(self.max_body_size),
                    "code": "request_too_large",
                }
                return Response(
                    content=json.dumps(body),
                    status_code=413,
                    media_type="application/json",
                )

        return await call_next(request)
