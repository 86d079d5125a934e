# backend/tutorbook/main.py
"""
Tutorbook API application.

Mounts the v1 routers, installs the request-id middleware and exposes
Prometheus metrics.
"""

from contextlib import asynccontextmanager
import logging
import time
from typing import AsyncGenerator, Awaitable, Callable

from fastapi import APIRouter, FastAPI, Request, Response
from fastapi.responses import JSONResponse

from . import __version__
from .core.config import is_running_tests, settings
from .core.exceptions import DomainException, RepositoryException
from .core.logging_setup import bind_request_id, configure_logging, unbind_request_id
from .core.ulid_helper import generate_ulid
from .monitoring.prometheus_metrics import prometheus_metrics
from .routes.v1 import bookings as bookings_v1, schedules as schedules_v1

configure_logging(settings.log_level)

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown."""
    logger.info("Tutorbook API starting up...")
    logger.info(f"Environment: {settings.environment} (local timezone {settings.local_timezone})")
    if is_running_tests():
        logger.info("Running under pytest (test mode active)")
    if not settings.stripe_configured:
        logger.warning("STRIPE_SECRET_KEY is not set; card payments are unavailable")
    yield
    logger.info("Tutorbook API shutting down...")


app = FastAPI(
    title="Tutorbook API",
    description="Recurring availability and reservations for tutoring sessions",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
)


@app.exception_handler(DomainException)
async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    http_exc = exc.to_http_exception()
    return JSONResponse(
        status_code=http_exc.status_code,
        content={"detail": http_exc.detail},
        headers=http_exc.headers,
    )


@app.exception_handler(RepositoryException)
async def repository_exception_handler(request: Request, exc: RepositoryException) -> JSONResponse:
    logger.error("Unhandled repository error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=500,
        content={
            "detail": {
                "message": "A database error occurred. Please try again.",
                "code": "REPOSITORY_ERROR",
                "details": {},
            }
        },
    )


@app.middleware("http")
async def request_context_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    request_id = request.headers.get(REQUEST_ID_HEADER) or generate_ulid()
    token = bind_request_id(request_id)
    start = time.perf_counter()
    try:
        response = await call_next(request)
    finally:
        unbind_request_id(token)
    route = request.scope.get("route")
    endpoint = getattr(route, "path", request.url.path)
    prometheus_metrics.record_http_request(
        request.method, endpoint, time.perf_counter() - start, response.status_code
    )
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


# Create API v1 router
api_v1 = APIRouter(prefix="/api/v1")
api_v1.include_router(schedules_v1.router, prefix="/schedules")
api_v1.include_router(bookings_v1.router, prefix="/bookings")
app.include_router(api_v1)


@app.get("/health", include_in_schema=False)
def health() -> dict:
    return {"status": "ok", "version": __version__, "environment": settings.environment}


@app.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    return Response(
        content=prometheus_metrics.get_metrics(),
        media_type=prometheus_metrics.get_content_type(),
    )
