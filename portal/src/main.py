"""
FastAPI application entry point for the Invigilator Registration Portal.

This module provides the main FastAPI application with:
- Health and readiness endpoints
- Authentication, candidate, admin and public routers
- Request logging with correlation IDs
- Prometheus metrics
- Optional OpenTelemetry distributed tracing
- CORS, security headers, and rate limiting
- MongoDB client lifecycle and administrator bootstrap
"""

import time
import structlog
import uvicorn
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from prometheus_client import CONTENT_TYPE_LATEST
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from portal.src.config import Settings, get_settings
from portal.src.database import close_database, init_database, ping_database
from portal.src.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from portal.src.models.audit import AuditAction, ResourceType
from portal.src.rate_limit import limiter
from portal.src.repositories.audit_repo import AuditRepository
from portal.src.repositories.user_repo import UserRepository
from portal.src.routers import admin, auth, candidate, public
from portal.src.services.auth_service import AuthService
from shared.logging import configure_logging
from shared.metrics import get_metrics_handler, setup_metrics
from shared.models import HealthStatus, ReadinessInfo, ServiceInfo
from shared.tracing import configure_tracing

# Get settings
settings: Settings = get_settings()

configure_logging(
    log_level=settings.log_level,
    json_logs=settings.log_format == "json",
    app_name=settings.app_name,
    environment=settings.environment,
)

# Initialize logger
logger = structlog.get_logger(__name__)

setup_metrics()

STARTED_AT = time.time()


async def bootstrap_admin(db) -> None:
    """Create or promote the configured administrator account."""
    auth_service = AuthService(UserRepository(db))
    changed = await auth_service.ensure_admin(
        email=settings.admin_email.strip().lower(),
        password=settings.admin_password,
        name=settings.admin_name,
    )
    if changed:
        await AuditRepository(db).record(
            user_id=None,
            action=AuditAction.ADMIN_BOOTSTRAP,
            resource_type=ResourceType.USER,
            details={"source": "startup"},
        )


# ============================================================================
# Lifespan Management
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager for startup and shutdown events.

    Handles:
    - OpenTelemetry tracing setup
    - MongoDB client initialization and indexes
    - Administrator bootstrap
    - Graceful shutdown and resource cleanup
    """
    logger.info(
        "application_starting",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment
    )

    tracer_provider = None

    try:
        if settings.tracing_enabled:
            logger.info("initializing_tracing", endpoint=settings.tracing_otlp_endpoint)
            tracer_provider = configure_tracing(
                service_name=settings.app_name,
                service_version=settings.app_version,
                otlp_endpoint=settings.tracing_otlp_endpoint,
                sampling_rate=settings.tracing_sample_rate,
            )

        db = await init_database()

        if settings.bootstrap_admin_enabled:
            await bootstrap_admin(db)

        logger.info(
            "application_started",
            app_name=settings.app_name,
            version=settings.app_version,
            environment=settings.environment
        )

        yield

    except Exception as e:
        logger.error("application_startup_failed", error=str(e), exc_info=True)
        raise

    # ========================================================================
    # Shutdown: Cleanup Resources
    # ========================================================================

    finally:
        logger.info("application_shutting_down")

        try:
            await close_database()

            if tracer_provider is not None:
                logger.info("shutting_down_tracing")
                tracer_provider.shutdown()

            logger.info("application_shutdown_complete")

        except Exception as e:
            logger.error("application_shutdown_failed", error=str(e), exc_info=True)


# ============================================================================
# FastAPI Application
# ============================================================================

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description=(
        "Registration portal for exam invigilators. Candidates sign up, complete "
        "their application and download their documents; administrators configure "
        "exam windows and review candidates."
    ),
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    debug=settings.debug,
)

app.state.limiter = limiter

# ============================================================================
# Middleware Configuration
# ============================================================================

# CORS Middleware
if settings.cors_enabled:
    logger.info("configuring_cors", origins=settings.cors_origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

# GZip Compression Middleware
app.add_middleware(GZipMiddleware, minimum_size=1000)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(SecurityHeadersMiddleware)

# OpenTelemetry Instrumentation
if settings.tracing_enabled:
    FastAPIInstrumentor.instrument_app(app)

# ============================================================================
# Exception Handlers
# ============================================================================

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors."""
    errors = jsonable_encoder(exc.errors())
    logger.warning(
        "validation_error",
        path=request.url.path,
        errors=errors
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": errors}
    )

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions."""
    logger.warning(
        "http_exception",
        path=request.url.path,
        status_code=exc.status_code,
        detail=exc.detail
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=getattr(exc, "headers", None)
    )

@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.error(
        "unexpected_exception",
        path=request.url.path,
        error=str(exc),
        exc_info=True
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"}
    )

# Rate limit exception handler
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# ============================================================================
# Health and Readiness Endpoints
# ============================================================================

@app.get("/health", tags=["Health"], response_model=ServiceInfo)
async def health_check() -> ServiceInfo:
    """
    Health check endpoint.

    Returns basic health status without checking dependencies.
    Use for container health checks.
    """
    return ServiceInfo(
        status=HealthStatus.HEALTHY,
        service=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
        uptime_seconds=round(time.time() - STARTED_AT, 3),
    )

@app.get("/ready", tags=["Health"], response_model=ReadinessInfo)
async def readiness_check() -> JSONResponse:
    """
    Readiness check endpoint.

    Pings MongoDB; 503 when it cannot be reached.
    """
    database_ok = await ping_database()
    readiness = ReadinessInfo(
        status="ready" if database_ok else "not_ready",
        service=settings.app_name,
        version=settings.app_version,
        checks={"database": HealthStatus.HEALTHY if database_ok else HealthStatus.UNHEALTHY},
        error=None if database_ok else "database ping failed",
    )

    status_code = status.HTTP_200_OK if readiness.is_ready else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(status_code=status_code, content=readiness.model_dump(mode="json"))

# ============================================================================
# Metrics Endpoint
# ============================================================================

_metrics_handler = get_metrics_handler()

@app.get("/metrics", tags=["Monitoring"], response_class=PlainTextResponse)
async def metrics() -> Response:
    """
    Prometheus metrics endpoint.

    Exposes application metrics in Prometheus format for scraping.
    """
    if not settings.metrics_enabled:
        return Response(status_code=status.HTTP_404_NOT_FOUND)

    return Response(
        content=_metrics_handler(),
        media_type=CONTENT_TYPE_LATEST
    )

# ============================================================================
# API Router Registration
# ============================================================================

app.include_router(auth.router, prefix=settings.api_prefix)
app.include_router(candidate.router, prefix=settings.api_prefix)
app.include_router(admin.router, prefix=settings.api_prefix)
app.include_router(public.router, prefix=settings.api_prefix)

# ============================================================================
# Application Entry Point
# ============================================================================

if __name__ == "__main__":
    """
    Run the application with Uvicorn for development.
    """
    logger.info(
        "starting_uvicorn_server",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )

    uvicorn.run(
        "portal.src.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
        access_log=True,
        use_colors=True,
    )
