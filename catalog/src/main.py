"""
FastAPI application entry point for the Local Library catalog.

This module provides the main FastAPI application with:
- Catalog page routers (authors, books, book copies, genres)
- Request logging with correlation IDs
- Prometheus metrics
- Security headers
- HTML error pages for not-found and unexpected errors
- Document store client and repository lifecycle
- Health and readiness endpoints
"""

import time
import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, Any

import structlog
import uvicorn
from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.routing import Match
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from pymongo import AsyncMongoClient

from catalog.src.config import get_settings, Settings
from catalog.src.errors import CatalogError
from catalog.src.repositories import Repositories
from catalog.src.routers import authors, books, bookinstances, genres, home
from catalog.src.services.display import CATALOG_PREFIX
from catalog.src.templating import redirect, render
from shared.logging import bind_request, configure_logging, unbind_request
from shared.metrics import get_http_metrics

settings: Settings = get_settings()

configure_logging(
    log_level=settings.log_level,
    json_logs=settings.log_format == "json",
    service_name=settings.app_name,
    environment=settings.environment,
)

logger = structlog.get_logger(__name__)

http_metrics = get_http_metrics()

# ============================================================================
# Lifespan Management
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager for startup and shutdown events.

    Handles:
    - Document store client creation and connectivity check
    - Repository initialization
    - Graceful shutdown and resource cleanup
    """
    logger.info(
        "application_starting",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment
    )

    client = None
    try:
        logger.info(
            "connecting_document_store",
            database=settings.mongodb_database,
            timeout_ms=settings.mongodb_server_selection_timeout_ms
        )
        client = AsyncMongoClient(
            settings.mongodb_url,
            serverSelectionTimeoutMS=settings.mongodb_server_selection_timeout_ms,
        )
        await client.admin.command("ping")
        logger.info("document_store_connected", database=settings.mongodb_database)

        app.state.mongo_client = client
        app.state.repositories = Repositories.from_database(client[settings.mongodb_database])
        logger.info("repositories_initialized")

        logger.info("application_started", app_name=settings.app_name, version=settings.app_version)

        yield

    except Exception as e:
        logger.error("application_startup_failed", error=str(e), exc_info=True)
        raise

    finally:
        logger.info("application_shutting_down")
        if client is not None:
            await client.close()
            logger.info("document_store_closed")
        logger.info("application_shutdown_complete")


# ============================================================================
# FastAPI Application
# ============================================================================

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Server-rendered catalog of a local library.",
    docs_url=None,
    redoc_url=None,
    lifespan=lifespan,
)

# ============================================================================
# Middleware Configuration
# ============================================================================


UNMATCHED_ENDPOINT = "unmatched"


def route_template(request: Request) -> str:
    """
    Path template of the route that serves a request.

    Metrics are labelled with the template (e.g. ``/catalog/author/{author_id}``)
    so one series exists per route, not per document identifier.
    """
    for route in request.app.router.routes:
        match, _ = route.matches(request.scope)
        if match != Match.NONE:
            return getattr(route, "path", UNMATCHED_ENDPOINT)
    return UNMATCHED_ENDPOINT


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for request logging and metrics."""

    async def dispatch(self, request: Request, call_next):
        """Process request and log details."""
        correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
        request.state.correlation_id = correlation_id
        bind_request(correlation_id)

        method = request.method
        path = request.url.path
        endpoint = route_template(request)

        http_metrics.requests_in_progress.labels(method=method, endpoint=endpoint).inc()
        start_time = time.time()

        logger.info("request_started", method=method, path=path)

        try:
            response = await call_next(request)

            duration = time.time() - start_time

            http_metrics.requests_total.labels(
                method=method,
                endpoint=endpoint,
                status=response.status_code
            ).inc()
            http_metrics.request_duration.labels(method=method, endpoint=endpoint).observe(duration)

            logger.info(
                "request_completed",
                method=method,
                path=path,
                status_code=response.status_code,
                duration=f"{duration:.3f}s"
            )

            response.headers["X-Correlation-ID"] = correlation_id
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
            http_metrics.requests_in_progress.labels(method=method, endpoint=endpoint).dec()
            unbind_request()


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to add security headers to responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        if settings.security_headers_enabled:
            response.headers["X-Content-Type-Options"] = "nosniff"
            response.headers["X-Frame-Options"] = "DENY"
            response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        return response


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestLoggingMiddleware)

# ============================================================================
# Exception Handlers
# ============================================================================


@app.exception_handler(CatalogError)
async def catalog_exception_handler(request: Request, exc: CatalogError):
    """Render domain errors (e.g. unknown identifiers) as an error page."""
    logger.warning(
        "catalog_error",
        path=request.url.path,
        status_code=exc.status_code,
        error=exc.message
    )
    return render(
        request,
        "error.html",
        {"title": "Error", "message": exc.message, "status_code": exc.status_code},
        status_code=exc.status_code,
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions such as unknown routes."""
    logger.warning(
        "http_exception",
        path=request.url.path,
        status_code=exc.status_code,
        detail=exc.detail
    )
    return render(
        request,
        "error.html",
        {"title": "Error", "message": exc.detail, "status_code": exc.status_code},
        status_code=exc.status_code,
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions, including document store failures."""
    logger.error(
        "unexpected_exception",
        path=request.url.path,
        error=str(exc),
        exc_info=True
    )
    return render(
        request,
        "error.html",
        {
            "title": "Error",
            "message": "Internal server error",
            "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR,
        },
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )

# ============================================================================
# Health, Readiness and Metrics Endpoints
# ============================================================================


@app.get("/health", tags=["Health"], response_class=JSONResponse)
async def health_check() -> Dict[str, Any]:
    """
    Health check endpoint.

    Returns basic health status without checking dependencies.
    """
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment
    }


@app.get("/ready", tags=["Health"], response_class=JSONResponse)
async def readiness_check(request: Request):
    """
    Readiness check endpoint.

    Verifies the document store answers a ping.
    """
    checks = {"document_store": "unknown"}

    client = getattr(request.app.state, "mongo_client", None)
    try:
        if client is None:
            raise RuntimeError("document store client not initialized")
        await client.admin.command("ping")
        checks["document_store"] = "healthy"
    except Exception as e:
        logger.error("document_store_health_check_failed", error=str(e))
        checks["document_store"] = "unhealthy"

    all_healthy = all(value == "healthy" for value in checks.values())
    return JSONResponse(
        status_code=status.HTTP_200_OK if all_healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if all_healthy else "not_ready",
            "service": settings.app_name,
            "version": settings.app_version,
            "checks": checks
        }
    )


@app.get("/metrics", tags=["Monitoring"], response_class=PlainTextResponse)
async def metrics() -> Response:
    """Prometheus metrics endpoint."""
    if not settings.metrics_enabled:
        return Response(status_code=status.HTTP_404_NOT_FOUND)
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

# ============================================================================
# Router Registration
# ============================================================================


@app.get("/", include_in_schema=False)
async def root():
    return redirect(CATALOG_PREFIX)


app.include_router(home.router, prefix=CATALOG_PREFIX)
app.include_router(authors.router, prefix=CATALOG_PREFIX)
app.include_router(books.router, prefix=CATALOG_PREFIX)
app.include_router(bookinstances.router, prefix=CATALOG_PREFIX)
app.include_router(genres.router, prefix=CATALOG_PREFIX)

# ============================================================================
# Application Entry Point
# ============================================================================

if __name__ == "__main__":
    logger.info(
        "starting_uvicorn_server",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )

    uvicorn.run(
        "catalog.src.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
        access_log=True,
    )
