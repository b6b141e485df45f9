"""
Request logging and HTTP metrics middleware.

Every request gets a correlation ID (taken from ``X-Correlation-ID`` or
generated), bound into the structlog context and echoed on the response.
Metrics are labelled with the route template, not the raw path, so ids in
URLs do not create new series.
"""

import time
import uuid
import structlog
from typing import Set

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from shared.logging import bind_context, clear_context
from shared.metrics import setup_metrics

logger = structlog.get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for request logging and metrics."""

    # Probe and scrape endpoints are not logged at info level
    QUIET_PATHS: Set[str] = {"/health", "/ready", "/metrics"}

    async def dispatch(self, request: Request, call_next):
        """Process request and log details."""
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        request.state.correlation_id = correlation_id

        clear_context()
        bind_context(correlation_id=correlation_id)

        http_metrics, _ = setup_metrics()
        method = request.method
        path = request.url.path
        quiet = path in self.QUIET_PATHS
        log = logger.debug if quiet else logger.info

        http_metrics.requests_in_progress.labels(method=method).inc()
        start_time = time.time()

        log(
            "request_started",
            method=method,
            path=path,
            client_ip=request.client.host if request.client else "unknown"
        )

        try:
            response = await call_next(request)
            duration = time.time() - start_time

            route = request.scope.get("route")
            endpoint = getattr(route, "path", path)

            http_metrics.requests_total.labels(
                method=method,
                endpoint=endpoint,
                status=response.status_code
            ).inc()
            http_metrics.request_duration.labels(method=method, endpoint=endpoint).observe(duration)

            log(
                "request_completed",
                method=method,
                path=path,
                status_code=response.status_code,
                duration=f"{duration:.3f}s"
            )

            response.headers[CORRELATION_HEADER] = correlation_id
            return response

        except Exception as e:
            duration = time.time() - start_time
            logger.error(
                "request_failed",
                method=method,
                path=path,
                error=str(e),
                duration=f"{duration:.3f}s",
                exc_info=True
            )
            raise

        finally:
            http_metrics.requests_in_progress.labels(method=method).dec()
