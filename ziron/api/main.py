"""
FastAPI Main Application Entry Point.

This module initializes the FastAPI application with:
- CORS middleware
- Typed error handlers (validation / persistence / broker)
- Health check endpoint
- API versioning (v1)
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..cache import close_cache
from ..config import configure_logging, get_settings
from ..database import dispose_engines
from ..database.bootstrap import init_db
from ..errors import DispatchError
from ..queue import close_queue_client
from .schemas import ErrorResponse, HealthResponse

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"

OPENAPI_TAGS = [
    {
        "name": "Health",
        "description": "Health check and status endpoints",
    },
    {
        "name": "Notifications",
        "description": "Queue notifications for the worker and manage their read state.",
    },
    {
        "name": "Collections",
        "description": "Cached collection lookup and soft deletion.",
    },
    {
        "name": "Cache",
        "description": "Cache hit/miss metrics and recommendations.",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: create missing tables.
    Shutdown: close the queue client, cache and database engines.
    """
    settings = get_settings()
    logger.info("Starting %s v%s (queue backend: %s)", settings.app_name, settings.app_version, settings.queue_backend)

    await init_db()

    yield

    await close_queue_client()
    await close_cache()
    await dispose_engines()
    logger.info("Shut down %s", settings.app_name)


def create_app() -> FastAPI:
    """
    FastAPI application factory.

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="""
## Ziron Dispatch API v1

Producer side of the notification and retention pipeline:
- **Notifications** are validated here and queued; the worker persists and publishes them
- **Retention sweeps** run in the worker on a daily schedule
- **Collections** are served read-through from the cache

| Category | Endpoints |
|----------|-----------|
| Notifications | `/api/v1/notifications/*` |
| Collections | `/api/v1/collections/*` |
| Cache | `/api/v1/cache-monitor` |
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url=f"{API_PREFIX}/openapi.json",
        openapi_tags=OPENAPI_TAGS,
        lifespan=lifespan,
    )

    allow_origins = settings.cors_origins_list
    # Wildcard origins cannot be combined with credentials.
    allow_credentials = False if allow_origins == ["*"] else True
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    register_routers(app)

    return app


def register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(DispatchError)
    async def dispatch_error_handler(request: Request, exc: DispatchError):
        settings = get_settings()
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.kind)
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_dict(include_details=settings.expose_error_details),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        settings = get_settings()
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)

        error_response = {
            "success": False,
            "error": {
                "type": "internal_error",
                "message": "An unexpected error occurred",
            },
        }

        if settings.expose_error_details:
            error_response["error"]["details"] = str(exc)

        return JSONResponse(status_code=500, content=error_response)


def register_routers(app: FastAPI) -> None:
    """
    Register all API routers under /api/v1:
    - /health
    - /notifications/*
    - /collections/*
    - /cache-monitor
    """

    @app.get(
        f"{API_PREFIX}/health",
        tags=["Health"],
        summary="Health Check",
        response_model=HealthResponse,
        responses={500: {"description": "Internal server error", "model": ErrorResponse}},
    )
    async def health_check() -> HealthResponse:
        settings = get_settings()
        return HealthResponse(
            status="healthy",
            service="ziron-dispatch-api",
            version=settings.app_version,
            timestamp=datetime.now(timezone.utc),
            api="v1",
            queue_backend=settings.queue_backend,
            scheduler_enabled=settings.scheduler_enabled,
        )

    @app.get("/", include_in_schema=False)
    async def root():
        return JSONResponse(
            content={
                "message": "Welcome to Ziron Dispatch API v1",
                "docs": "/docs",
                "health": f"{API_PREFIX}/health",
            }
        )

    from .routers import cache_monitor_router, collections_router, notifications_router

    app.include_router(notifications_router, prefix=API_PREFIX)
    app.include_router(collections_router, prefix=API_PREFIX)
    app.include_router(cache_monitor_router, prefix=API_PREFIX)


app = create_app()
