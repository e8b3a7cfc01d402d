"""
GrocerHub Backend — FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() wires the collaborators (database handle, token verifier,
       feed adapter registry) onto app.state, then registers middleware,
       exception handlers and routers.
Who:   uvicorn (`uvicorn grocerhub.main:app`) and the test-suite, which
       passes its own collaborators.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌──────────┐ ┌──────────┐ ┌──────┐ ┌──────┐            │
    │  │ Req ID   │→│ Logging  │→│ GZip │→│ CORS │            │
    │  └──────────┘ └──────────┘ └──────┘ └──────┘            │
    │                                                          │
    │  Routes:                                                 │
    │  /api/admin/*   /api/customers/*   /api/drivers/*  /health│
    │                                                          │
    │  app.state:                                              │
    │  database · token_verifier · feed_registry               │
    └──────────────────────────────────────────────────────────┘
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from grocerhub import __version__
from grocerhub.auth import StaticTokenVerifier, TokenVerifier
from grocerhub.config import settings
from grocerhub.database import Database
from grocerhub.exceptions import (
    AuthenticationError,
    AuthorizationError,
    CircuitBreakerOpenError,
    ConfigurationError,
    ConflictError,
    DatabaseError,
    FeedFetchError,
    GrocerHubError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from grocerhub.middleware.logging import RequestLoggingMiddleware
from grocerhub.middleware.request_id import RequestIDMiddleware, request_id_var
from grocerhub.routes import admin, customers, drivers, health
from grocerhub.services.feeds import FeedAdapterRegistry

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure application-wide logging once at startup.

    Format: 2024-01-15T12:00:00 [INFO] grocerhub.services.reconciliation_service: ...
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Per-operation chatter from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: configure logging, report configuration problems.
    Shutdown: close every pooled database connection.
    """
    setup_logging()
    logger.info("=" * 60)
    logger.info("GrocerHub Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: /health and the public product listing still work
        logger.error("Configuration error: %s", str(e))

    logger.info("Feed providers: %s", ", ".join(app.state.feed_registry.states()))
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("GrocerHub Backend shutting down...")
    await app.state.database.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

# (exception type, HTTP status, machine-readable error code)
_ERROR_MAP = (
    (ValidationError, 400, "validation_error"),
    (ConfigurationError, 400, "configuration_error"),
    (InvalidTransitionError, 400, "invalid_transition"),
    (AuthenticationError, 401, "not_authenticated"),
    (AuthorizationError, 403, "forbidden"),
    (NotFoundError, 404, "not_found"),
    (ConflictError, 409, "conflict"),
    (FeedFetchError, 500, "feed_fetch_error"),
)


def _error_body(error: str, message: str, details=None) -> dict:
    body = {"error": error, "message": message, "request_id": request_id_var.get("")}
    if details:
        body["details"] = details
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map every application exception to its HTTP status and the standard
    `{error, message, details, request_id}` body.

    Handlers never expose stack traces or SQL; those are logged server-side.
    Starlette resolves handlers by the exception's MRO, so
    CircuitBreakerOpenError gets its own 503 handler ahead of FeedFetchError.
    """

    def make_handler(status_code: int, error_code: str):
        async def handler(request: Request, exc: GrocerHubError):
            log = logger.error if status_code >= 500 else logger.warning
            log("[%s] %s: %s", request_id_var.get(""), type(exc).__name__, exc.message)
            return JSONResponse(
                status_code=status_code,
                content=_error_body(error_code, exc.message, exc.context),
            )

        return handler

    for exc_class, status_code, error_code in _ERROR_MAP:
        app.add_exception_handler(exc_class, make_handler(status_code, error_code))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        """Malformed body or parameters, reported in the same envelope as business-rule failures."""
        errors = [
            {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
            for err in exc.errors()
        ]
        first = errors[0]["msg"] if errors else "Invalid request"
        return JSONResponse(
            status_code=400,
            content=_error_body("validation_error", first, {"errors": errors}),
        )

    @app.exception_handler(CircuitBreakerOpenError)
    async def handle_circuit_breaker(request: Request, exc: CircuitBreakerOpenError):
        logger.warning("[%s] Circuit breaker open: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=503,
            content=_error_body("service_unavailable", exc.message, exc.context),
            headers={"Retry-After": str(exc.recovery_time)},
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        """Generic message to the client; context is logged server-side only."""
        logger.error(
            "[%s] Database error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context
        )
        return JSONResponse(
            status_code=500,
            content=_error_body("server_error", "An internal error occurred. Please try again later."),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", request_id_var.get(""), str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content=_error_body(
                "internal_server_error",
                "An unexpected error occurred. Please try again or contact support.",
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    database: Optional[Database] = None,
    token_verifier: Optional[TokenVerifier] = None,
    feed_registry: Optional[FeedAdapterRegistry] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        database:       Storage handle; built from settings.database_url if omitted
        token_verifier: Bearer token verifier; StaticTokenVerifier from AUTH_TOKENS if omitted
        feed_registry:  Feed adapters by provider; the built-in set if omitted
    """
    app = FastAPI(
        title="GrocerHub API",
        description=(
            "Grocery-delivery marketplace: products aggregated across partner stores, "
            "customer orders, driver fulfilment and store catalog synchronization."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.database = database or Database()
    app.state.token_verifier = token_verifier or StaticTokenVerifier.from_settings()
    app.state.feed_registry = feed_registry or FeedAdapterRegistry.default()

    # ── Middleware (last added runs first) ────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(admin.router)
    app.include_router(customers.router)
    app.include_router(drivers.router)
    app.include_router(health.router)

    return app


# uvicorn entry point: `uvicorn grocerhub.main:app`
app = create_app()
