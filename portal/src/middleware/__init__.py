"""FastAPI middleware components.

This package contains custom middleware for request logging, metrics and
security headers. Authentication and authorization are dependencies (see
``portal.src.dependencies``).
"""

from portal.src.middleware.request_logging import RequestLoggingMiddleware
from portal.src.middleware.security_headers import SecurityHeadersMiddleware

__all__ = [
    "RequestLoggingMiddleware",
    "SecurityHeadersMiddleware",
]
