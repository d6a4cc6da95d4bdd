"""
EcoAdmin Backend: FastAPI Application Factory
==============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app(settings) builds every component (database, image store,
       services) from one Settings object, stores them on app.state, and
       registers middleware, exception handlers and routes.
Who:   uvicorn (ecoadmin.main:app) and the test suite (create_app(settings)).

Application Architecture:
    ┌─────────────────────────────────────────────────────────┐
    │                      FastAPI App                        │
    │                                                         │
    │  Middleware Chain:                                      │
    │  ┌────────────┐ ┌──────────┐ ┌─────────┐ ┌──────────┐  │
    │  │ Rate Limit │→│ Req ID   │→│ Logging │→│ GZip/CORS│  │
    │  └────────────┘ └──────────┘ └─────────┘ └──────────┘  │
    │                                                         │
    │  Routes:                                                │
    │  locations │ join requests │ profiles │ admin │ health  │
    │                                                         │
    │  Exception Handlers → {"success": false, ...}           │
    │  Validation→400 │ NotFound→404 │ InvalidState→409       │
    │  RateLimit→429  │ StoreUnavailable→503 │ other→500      │
    └─────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Validate configuration (logged, not fatal)
    3. Create the storage directory
    4. Optionally create tables (AUTO_CREATE_SCHEMA)

    Shutdown:
    1. Dispose the database engine (close all pooled connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from ecoadmin import __version__
from ecoadmin.config import Settings, get_settings
from ecoadmin.database import Database
from ecoadmin.exceptions import (
    EcoAdminError,
    InvalidStateError,
    NotFoundError,
    RateLimitExceededError,
    StoreUnavailableError,
    UnclassifiedError,
    ValidationError,
)
from ecoadmin.middleware.logging import RequestLoggingMiddleware
from ecoadmin.middleware.rate_limit import RateLimitMiddleware
from ecoadmin.middleware.request_id import RequestIDMiddleware, request_id_var
from ecoadmin.routes import admin, health, join_requests, locations, profiles
from ecoadmin.schemas.common import ErrorResponse
from ecoadmin.services.admin_service import AdminService
from ecoadmin.services.image_service import ImageService
from ecoadmin.services.join_service import JoinRequestService
from ecoadmin.services.location_service import LocationService
from ecoadmin.services.profile_service import ProfileService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(settings: Settings) -> None:
    """
    Configure the root logger once at startup.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Per-request noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings: Settings = app.state.settings
    database: Database = app.state.database

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(settings)
    logger.info("=" * 60)
    logger.info("EcoAdmin Backend starting up (environment=%s)...", settings.environment)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Not fatal: everything except the admin key check still works
        logger.error("Configuration error: %s", str(e))

    storage = Path(settings.storage_root)
    storage.mkdir(parents=True, exist_ok=True)
    logger.info("Storage directory: %s", storage.resolve())

    if settings.auto_create_schema:
        await database.create_all()
        logger.info("Database schema created (AUTO_CREATE_SCHEMA)")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("EcoAdmin Backend shutting down...")
    await database.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(
    status_code: int,
    error: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    body = ErrorResponse(
        error=error,
        message=message,
        details=details,
        request_id=request_id_var.get("") or None,
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(by_alias=True, exclude_none=True),
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map the application's exceptions to HTTP responses.

    Handler hierarchy:
        ValidationError, RequestValidationError → 400
        NotFoundError                           → 404
        InvalidStateError                       → 409
        RateLimitExceededError                  → 429 + Retry-After
        StoreUnavailableError                   → 503 + Retry-After
        UnclassifiedError (Database/FileStorage)→ 500
        EcoAdminError (base), Exception         → 500

    Exception context is logged server-side; only messages the client can act
    on are returned.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("Validation error: %s", exc.message)
        details = {"field": exc.field} if exc.field else None
        return _error_response(400, "validation_error", exc.message, details)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path", "form")]
        field = loc[-1] if loc else None
        message = first.get("msg", "Invalid request")
        if field:
            message = f"{field}: {message}"
        logger.warning("Request validation error: %s", message)
        return _error_response(400, "validation_error", message, {"field": field} if field else None)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error_response(404, "not_found", exc.message)

    @app.exception_handler(InvalidStateError)
    async def handle_invalid_state(request: Request, exc: InvalidStateError):
        details = {"currentStatus": exc.current_status} if exc.current_status else None
        return _error_response(409, "invalid_state", exc.message, details)

    @app.exception_handler(RateLimitExceededError)
    async def handle_rate_limit(request: Request, exc: RateLimitExceededError):
        return _error_response(
            429,
            "rate_limit_exceeded",
            exc.message,
            {"retryAfter": exc.retry_after},
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(StoreUnavailableError)
    async def handle_store_unavailable(request: Request, exc: StoreUnavailableError):
        logger.error("Store unavailable: %s | Context: %s", exc.message, exc.context)
        return _error_response(
            503,
            "store_unavailable",
            exc.message,
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(UnclassifiedError)
    async def handle_unclassified(request: Request, exc: UnclassifiedError):
        logger.error("%s: %s | Context: %s", type(exc).__name__, exc.message, exc.context)
        return _error_response(500, "server_error", exc.message)

    @app.exception_handler(EcoAdminError)
    async def handle_application_error(request: Request, exc: EcoAdminError):
        logger.error("Unhandled application error: %s | Context: %s", exc.message, exc.context)
        return _error_response(500, "server_error", "An internal error occurred. Please try again later.")

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("Unexpected error: %s", str(exc), exc_info=True)
        return _error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: configuration for this instance; the process-wide
                  environment settings when omitted.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="EcoAdmin API",
        description=(
            "Submission and review backend for eco locations, applicant profiles "
            "and requests to join approved locations."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Components ────────────────────────────────────────────────────────
    database = Database(settings)
    image_service = ImageService(settings)

    app.state.settings = settings
    app.state.database = database
    app.state.image_service = image_service
    app.state.location_service = LocationService(image_service)
    app.state.profile_service = ProfileService(image_service)
    app.state.join_service = JoinRequestService(image_service)
    app.state.admin_service = AdminService(settings)

    # ── Middleware ────────────────────────────────────────────────────────
    # Executes in reverse order of addition: RateLimit → RequestID →
    # Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials="*" not in settings.cors_origins_list,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        max_requests=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window,
    )

    register_exception_handlers(app)

    # ── Routes ────────────────────────────────────────────────────────────
    app.include_router(locations.router)
    app.include_router(join_requests.router)
    app.include_router(profiles.router)
    app.include_router(admin.router)
    app.include_router(health.router)

    return app


# uvicorn ecoadmin.main:app
app = create_app()
