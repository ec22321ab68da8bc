"""
Middleware for the cough survey API.
"""
from .request_logging import RequestLoggingMiddleware
from .security import RequestSizeLimitMiddleware, SecurityHeadersMiddleware

__all__ = [
    "RequestLoggingMiddleware",
    "RequestSizeLimitMiddleware",
    "SecurityHeadersMiddleware",
]
