"""
Vroom Route API — FastAPI Application Factory
==============================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn vroom_api.main:app),
       or through run() / the `vroom-api` console script.
When:  Once at server startup; the returned app handles all subsequent requests.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌─────────┐ ┌──────┐ ┌──────┐         │
    │  │  Req ID  │→│ Logging │→│ GZip │→│ CORS │         │
    │  └──────────┘ └─────────┘ └──────┘ └──────┘         │
    │                                                     │
    │  Routes:                                            │
    │  ┌──────────────┐ ┌─────────────────┐               │
    │  │ GET /route   │ │ GET /health     │               │
    │  └──────────────┘ └─────────────────┘               │
    │                                                     │
    │  Exception Handlers (all → {"message": ...}):       │
    │  ┌──────────────────────────────────────────────┐   │
    │  │ VroomApiError→400 │ Bad params→400 │ Any→400 │   │
    │  └──────────────────────────────────────────────┘   │
    └─────────────────────────────────────────────────────┘
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from vroom_api import __version__
from vroom_api.config import Settings, settings
from vroom_api.exceptions import (
    ConfigurationError,
    ExecutionError,
    UnclassifiedError,
    ValidationError,
    VroomApiError,
)
from vroom_api.middleware.logging import RequestLoggingMiddleware
from vroom_api.middleware.request_id import RequestIDMiddleware, request_id_var
from vroom_api.routes import health, route
from vroom_api.schemas.route import VroomBinary
from vroom_api.services.vroom_service import VroomService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(log_level: str) -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Output: stdout (container runtimes capture it)
    """
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
        force=True,
    )

    # RequestLoggingMiddleware already writes one line per request
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup:
        1. Setup logging
        2. Check the VROOM binary (warn only; requests re-check it)
        3. Log successful startup

    Shutdown:
        Nothing to release: child processes belong to their requests.
    """
    app_settings: Settings = app.state.settings

    setup_logging(app_settings.log_level)
    logger.info("=" * 60)
    logger.info("Vroom Route API %s starting up...", __version__)

    try:
        app_settings.validate_binary()
        logger.info("VROOM binary: %s", app_settings.vroom_binlocation)
    except ValueError as e:
        logger.warning("%s", e)
        logger.warning("Requests to /route will fail until the binary is fixed.")

    logger.info("Server ready at http://%s:%d", app_settings.backend_host, app_settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("Vroom Route API shutting down...")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error responses.

    Handler hierarchy:
        ValidationError         → 400 (client can fix the input)
        ConfigurationError      → 400 (binary missing / not executable)
        ExecutionError          → 400 (spawn failure / output not JSON)
        UnclassifiedError       → 400 with the wrapped exception's message
        RequestValidationError  → 400 "Bad request" (malformed query params)
        HTTPException           → its own status (404, 405, ...)
        Exception (last resort) → 400 with the exception's message; runs
                                  outside the middleware, so no X-Request-ID

    Every body is {"message": "<text>"}. Context and stack traces are logged
    server-side only.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        """Client sent too few locations."""
        rid = request_id_var.get("")
        logger.warning("[%s] Validation error: %s", rid, exc.message)
        return _error_response(400, exc.message)

    @app.exception_handler(ConfigurationError)
    async def handle_configuration_error(request: Request, exc: ConfigurationError):
        """The VROOM binary is not usable."""
        rid = request_id_var.get("")
        logger.error("[%s] Configuration error: %s | Context: %s", rid, exc.message, exc.context)
        return _error_response(400, exc.message)

    @app.exception_handler(ExecutionError)
    async def handle_execution_error(request: Request, exc: ExecutionError):
        """VROOM could not be started or its output could not be parsed."""
        rid = request_id_var.get("")
        logger.error(
            "[%s] Execution error: %s | Context: %s",
            rid,
            exc.message,
            exc.context,
            exc_info=exc,
        )
        return _error_response(400, exc.message)

    @app.exception_handler(UnclassifiedError)
    async def handle_unclassified_error(request: Request, exc: UnclassifiedError):
        """Unexpected failure inside a route: message to the client, stack trace to the log."""
        rid = request_id_var.get("")
        logger.error(
            "[%s] Exception when creating response: %s | Context: %s",
            rid,
            exc.message,
            exc.context,
            exc_info=exc.__cause__ or exc,
        )
        return _error_response(400, exc.message)

    @app.exception_handler(VroomApiError)
    async def handle_vroom_api_error(request: Request, exc: VroomApiError):
        rid = request_id_var.get("")
        logger.error("[%s] %s: %s", rid, type(exc).__name__, exc.message)
        return _error_response(400, exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        """Query parameters could not be parsed (e.g. includeGeometry=maybe)."""
        rid = request_id_var.get("")
        logger.warning("[%s] Bad request parameters: %s", rid, exc.errors())
        return _error_response(400, "Bad request")

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Catch-all: message to the client, stack trace to the log."""
        rid = request_id_var.get("")
        logger.error(
            "[%s] Exception when creating response: %s",
            rid,
            str(exc),
            exc_info=True,
        )
        return _error_response(400, str(exc))


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        app_settings: Settings to build from; the module singleton if None.
                      Tests pass their own to point at a fake binary.

    The binary path is read here, once, and frozen into the VroomService
    stored on app.state.
    """
    app_settings = app_settings or settings

    app = FastAPI(
        title="Vroom Route API",
        description=(
            "HTTP front end for the VROOM vehicle routing binary. Send a list of "
            "'lon,lat' locations and get VROOM's optimized route back as JSON."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.settings = app_settings
    app.state.vroom_service = VroomService(
        binary=VroomBinary(path=app_settings.vroom_binlocation),
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Executes in REVERSE order of addition: RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins_list,
        allow_methods=["GET"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(route.router)
    app.include_router(health.router)

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn on the configured address."""
    uvicorn.run(
        "vroom_api.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
