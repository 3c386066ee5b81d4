"""
Brewprint Backend — FastAPI Application Factory
================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn brewprint.main:app).

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌─────────┐ ┌──────┐ ┌────────────┐   │
    │  │ Req ID   │→│ Logging │→│ GZip │→│ CORS       │   │
    │  └──────────┘ └─────────┘ └──────┘ └────────────┘   │
    │                                                     │
    │  Routes:                                            │
    │  ┌──────────────┐ ┌─────────────┐ ┌──────────────┐  │
    │  │ /api/recipes │ │ /api/backup │ │ /api/library │  │
    │  └──────────────┘ └─────────────┘ └──────────────┘  │
    │                                                     │
    │  Exception Handlers:                                │
    │  ┌───────────────────────────────────────────────┐  │
    │  │ 400 Validation │ 404 │ 409 │ 422 │ 503 │ 500  │  │
    │  └───────────────────────────────────────────────┘  │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging, config validation, create tables, storage directory
    Shutdown: dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from brewprint import __version__
from brewprint.config import settings
from brewprint.database import dispose_engine, init_models
from brewprint.exceptions import (
    BrewprintError,
    ConflictError,
    DatabaseError,
    FileStorageError,
    NotFoundError,
    PartialReadError,
    UnsupportedFormatError,
    ValidationError,
)
from brewprint.middleware.logging import RequestLoggingMiddleware
from brewprint.middleware.request_id import RequestIDMiddleware, request_id_var
from brewprint.routes import backup, health, library, recipes

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Structured Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Called once during startup, before any other initialization.
    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    """
    log_format = (
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    )

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),  # Docker captures stdout
        ],
        force=True,
    )

    # Third-party libraries log every statement at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup:
        1. Setup logging
        2. Validate critical configuration (logged, not fatal)
        3. Create tables for every collection
        4. Create the storage directory

    Shutdown:
        1. Dispose database engine (close all pooled connections)
    """
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("Brewprint Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))
        logger.error("Fix the configuration and restart the server.")
        # Keep serving: /health reports the failure

    await init_models()

    storage = Path(settings.storage_root)
    storage.mkdir(parents=True, exist_ok=True)
    logger.info("Storage directory: %s", storage.resolve())

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Brewprint Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(
    status_code: int,
    error: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    content: Dict[str, Any] = {
        "error": error,
        "message": message,
        "request_id": request_id_var.get(""),
    }
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map domain exceptions to HTTP responses.

    Handler hierarchy:
        ValidationError         → 400 Bad Request (client can fix the input)
        NotFoundError           → 404 Not Found
        ConflictError           → 409 Conflict
        UnsupportedFormatError  → 422 Unprocessable Entity
        PartialReadError        → 503 Service Unavailable (export is all-or-nothing)
        FileStorageError        → 500 Internal Server Error
        DatabaseError           → 500 Internal Server Error
        BrewprintError (base)   → 500 Internal Server Error
        Exception (fallback)    → 500 Internal Server Error

    Server-side context (SQL errors, paths) is logged, never returned.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return _error_response(400, "validation_error", exc.message, exc.context)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error_response(404, "not_found", exc.message)

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        logger.warning("[%s] Conflict in %s: %s", request_id_var.get(""), exc.collection, exc.message)
        return _error_response(409, "conflict", exc.message, {"collection": exc.collection})

    @app.exception_handler(UnsupportedFormatError)
    async def handle_unsupported_format(request: Request, exc: UnsupportedFormatError):
        return _error_response(422, "unsupported_format", exc.message, exc.context)

    @app.exception_handler(PartialReadError)
    async def handle_partial_read(request: Request, exc: PartialReadError):
        logger.error("[%s] Export aborted: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return _error_response(
            503,
            "partial_read",
            "The export could not read all of your data. Please try again.",
            {"collection": exc.collection},
        )

    @app.exception_handler(FileStorageError)
    async def handle_file_storage_error(request: Request, exc: FileStorageError):
        logger.error("[%s] File storage error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return _error_response(500, "server_error", exc.message)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error("[%s] Database error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return _error_response(500, "server_error", "An internal error occurred. Please try again later.")

    @app.exception_handler(BrewprintError)
    async def handle_brewprint_error(request: Request, exc: BrewprintError):
        logger.error("[%s] Unhandled %s: %s", request_id_var.get(""), type(exc).__name__, exc.message)
        return _error_response(500, "server_error", exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s",
            request_id_var.get(""),
            str(exc),
            exc_info=True,
        )
        return _error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """Assemble middleware, exception handlers and routers."""
    app = FastAPI(
        title="Brewprint API",
        description=(
            "Coffee recipe versioning and backup service. Branch recipes into "
            "iterations, record brew results, and export or restore the whole library."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Executes in reverse order of addition: RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[
            "X-Request-ID",
            "X-Total-Count",
            "Content-Disposition",
        ],
    )

    # Snapshots compress well
    app.add_middleware(GZipMiddleware, minimum_size=500)

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(recipes.router)
    app.include_router(backup.router)
    app.include_router(library.router)
    app.include_router(health.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
# uvicorn expects `brewprint.main:app` to be importable
app = create_app()
