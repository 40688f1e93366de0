"""
Notely Backend - FastAPI Application Factory
=============================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() builds the rate limiters, registers
       middleware, exception handlers and routes, and returns the app.
Who:   Called by uvicorn to start the server (uvicorn notely.main:app).
When:  Once at server startup; the returned app handles all subsequent requests.

Application Architecture:
    ┌─────────────────────────────────────────────────────────────┐
    │                        FastAPI App                          │
    │                                                             │
    │  Middleware Chain:                                          │
    │  ┌─────────────┐ ┌────────────┐ ┌──────┐ ┌──────┐ ┌──────┐ │
    │  │ Distributed │→│ Local      │→│ CORS │→│ ReqID│→│ Log  │ │
    │  │ rate limit  │ │ rate limit │ └──────┘ └──────┘ └──────┘ │
    │  └─────────────┘ └────────────┘                            │
    │                                                             │
    │  Routes:                                                    │
    │  ┌──────────────────────┐ ┌──────────┐ ┌─────────────────┐ │
    │  │ /api/notes (CRUD)    │ │ GET /    │ │ GET /health     │ │
    │  └──────────────────────┘ └──────────┘ └─────────────────┘ │
    │                                                             │
    │  Exception Handlers:                                        │
    │  ┌───────────────────────────────────────────────────────┐ │
    │  │ Validation→400 │ NotFound→404 │ DB/Store/other→500    │ │
    │  └───────────────────────────────────────────────────────┘ │
    └─────────────────────────────────────────────────────────────┘

Lifecycle:
    Build (create_app):
    1. Select the window store; missing Redis credentials raise ValueError
    2. Construct both limiters once and hand them to their middleware

    Startup (lifespan):
    1. Initialize logging
    2. Log limiter configuration

    Shutdown:
    1. Close the window store connection pool
    2. Dispose database engine
"""

import logging
import sys
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Callable, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from notely import __version__
from notely.config import Settings, settings as default_settings
from notely.database import dispose_engine
from notely.exceptions import (
    DatabaseError,
    NotFoundError,
    RateLimitStoreError,
    ValidationError,
)
from notely.middleware.logging import RequestLoggingMiddleware
from notely.middleware.rate_limit import (
    DistributedRateLimitMiddleware,
    LocalRateLimitMiddleware,
)
from notely.middleware.request_id import RequestIDMiddleware, request_id_var
from notely.routes import health, notes
from notely.services.rate_limit_store import WindowStore
from notely.services.rate_limiter import DistributedRateLimiter, LocalRateLimiter
from notely.services.redis_store import build_window_store

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during app startup, before any other initialization logs.
    """
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),  # Docker captures stdout
        ],
        force=True,
    )

    # Third-party libraries log every operation at DEBUG/INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup logs the effective configuration; shutdown releases the Redis
    pool and the database engine.
    """
    app_settings: Settings = app.state.settings
    setup_logging(app_settings.log_level)
    logger.info("=" * 60)
    logger.info("Notely Backend starting up...")
    logger.info(
        "Distributed rate limit: %d requests / %ds per client (%s store)",
        app_settings.distributed_rate_limit_requests,
        app_settings.distributed_rate_limit_window,
        app_settings.rate_limit_store,
    )
    logger.info(
        "Local rate limit: %d requests / %ds per process",
        app_settings.local_rate_limit_requests,
        app_settings.local_rate_limit_window,
    )
    logger.info("Server ready at http://%s:%d", app_settings.backend_host, app_settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("Notely Backend shutting down...")
    await app.state.window_store.close()
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _validation_field(error: dict) -> Optional[str]:
    for part in reversed(error.get("loc", ())):
        if isinstance(part, str) and part not in ("body", "path", "query"):
            return part
    return None


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error responses.

    Handler hierarchy:
        RequestValidationError  → 400 Bad Request (malformed body or path)
        ValidationError         → 400 Bad Request (service-level checks)
        NotFoundError           → 404 Not Found
        DatabaseError           → 500 Internal Server Error
        RateLimitStoreError     → 500 Internal Server Error
        Exception (fallback)    → 500 Internal Server Error

    Errors raised by the rate-limit middleware run outside FastAPI's
    exception middleware and land in the Exception fallback.

    Responses never expose stack traces, SQL or Redis details; those are
    logged server-side.
    """

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        """Pydantic rejected the body or a path parameter."""
        rid = request_id_var.get("")
        errors = exc.errors()
        first = errors[0] if errors else {}
        message = str(first.get("msg", "Invalid request")).removeprefix("Value error, ")
        field = _validation_field(first)
        logger.warning("[%s] Request validation error on %s: %s", rid, field, message)
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": message,
                "details": {"field": field},
                "request_id": rid,
            },
        )

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        rid = request_id_var.get("")
        logger.warning("[%s] Validation error: %s", rid, exc.message)
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": exc.message,
                "details": exc.context,
                "request_id": rid,
            },
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        rid = request_id_var.get("")
        return JSONResponse(
            status_code=404,
            content={
                "error": "not_found",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": "An internal error occurred. Please try again later.",
                "request_id": rid,
            },
        )

    @app.exception_handler(RateLimitStoreError)
    async def handle_rate_limit_store_error(request: Request, exc: RateLimitStoreError):
        rid = request_id_var.get("")
        logger.error("[%s] Rate limit store error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": "An internal error occurred. Please try again later.",
                "request_id": rid,
            },
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """
        Catch-all for unexpected errors, including store failures raised by
        the distributed rate-limit middleware. Stack trace is logged
        server-side only.
        """
        rid = request_id_var.get("")
        logger.error(
            "[%s] Unexpected error: %s",
            rid,
            str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred. Please try again or contact support.",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    app_settings: Optional[Settings] = None,
    window_store: Optional[WindowStore] = None,
    local_limiter: Optional[LocalRateLimiter] = None,
    clock: Callable[[], float] = time.time,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        app_settings:  Settings to use (defaults to the module singleton).
        window_store:  Store for the distributed limiter. Built from
                       settings when omitted; tests pass an in-memory store.
        local_limiter: Process-wide limiter. Built from settings when omitted.
        clock:         Time source for Retry-After; must match the store's clock.

    Raises:
        ValueError: The Redis store is selected but its credentials are
                    missing. Raised here so the process never starts serving.
    """
    app_settings = app_settings or default_settings

    if window_store is None:
        window_store = build_window_store(app_settings)

    distributed_limiter = DistributedRateLimiter(
        store=window_store,
        limit=app_settings.distributed_rate_limit_requests,
        window=app_settings.distributed_rate_limit_window,
        prefix=app_settings.redis_key_prefix,
        clock=clock,
    )
    if local_limiter is None:
        local_limiter = LocalRateLimiter(
            max_requests=app_settings.local_rate_limit_requests,
            window=app_settings.local_rate_limit_window,
        )

    app = FastAPI(
        title="Notely API",
        description="Minimal note-taking API with per-client and process-wide rate limiting.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = app_settings
    app.state.window_store = window_store
    app.state.distributed_limiter = distributed_limiter
    app.state.local_limiter = local_limiter

    # ── Register Middleware ───────────────────────────────────────────────
    # Middleware executes in REVERSE order of addition (last added = outermost).
    # Added: Logging → RequestID → CORS → Local → Distributed
    # Runs:  Distributed → Local → CORS → RequestID → Logging → route

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
        expose_headers=[
            "X-Request-ID",
            "Retry-After",
            "RateLimit-Policy",
            "RateLimit-Limit",
            "RateLimit-Remaining",
            "RateLimit-Reset",
        ],
    )

    app.add_middleware(LocalRateLimitMiddleware, limiter=local_limiter)
    app.add_middleware(
        DistributedRateLimitMiddleware,
        limiter=distributed_limiter,
        trust_proxy=app_settings.trust_proxy,
    )

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(notes.router)
    app.include_router(health.router)

    return app


# uvicorn expects `notely.main:app` to be importable
app = create_app()
