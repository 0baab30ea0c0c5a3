"""
DevCamper Backend — FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn app.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────────────┐
    │                         FastAPI App                          │
    │                                                              │
    │  Middleware Chain:                                           │
    │  ┌────────────┐ ┌────────┐ ┌──────────┐ ┌─────────────────┐  │
    │  │ Rate Limit │→│ Req ID │→│ Logging  │→│ Security Headers│  │
    │  └────────────┘ └────────┘ └──────────┘ └─────────────────┘  │
    │                                                              │
    │  Routes (/api/v1):                                           │
    │  bootcamps · courses · reviews · auth · users                │
    │  + /uploads/{path} · /health                                 │
    │                                                              │
    │  Exception Handlers:                                         │
    │  DevCamperError→status_code │ IntegrityError→400 │ *→500     │
    └──────────────────────────────────────────────────────────────┘

Every error leaves as {"success": false, "error": "...", "request_id": "..."}.

Lifecycle:
    Startup:  logging → configuration warnings → upload directory
    Shutdown: dispose database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app import __version__
from app.config import settings
from app.database import dispose_engine
from app.exceptions import DevCamperError
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.rate_limit import RateLimitMiddleware
from app.middleware.request_id import RequestIDMiddleware, request_id_var
from app.middleware.security_headers import SecurityHeadersMiddleware
from app.routes import auth, bootcamps, courses, health, reviews, uploads, users

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: 2024-01-15T12:00:00 [INFO] app.services.bootcamp_service: ...
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries log every operation at DEBUG/INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("aiosmtplib").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("=" * 60)
    logger.info("DevCamper Backend %s starting up (%s)...", __version__, settings.environment)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # The API still serves read routes; the affected features fail per request
        logger.error("Configuration error: %s", e)

    uploads_dir = Path(settings.file_upload_path)
    uploads_dir.mkdir(parents=True, exist_ok=True)
    logger.info("Upload directory: %s", uploads_dir.resolve())
    logger.info(
        "Radius search distances in %s (earth radius %.0f)",
        settings.geo_distance_unit, settings.earth_radius,
    )
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("DevCamper Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_response(
    status_code: int, message: str, headers: Optional[dict] = None
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message, "request_id": request_id_var.get("")},
        headers=headers,
    )


def _validation_message(exc: RequestValidationError) -> str:
    messages = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        prefix = f"{'.'.join(location)}: " if location else ""
        messages.append(f"{prefix}{error.get('msg', 'Invalid value')}")
    return ", ".join(messages) or "Invalid request"


def register_exception_handlers(app: FastAPI) -> None:
    """
    The single place exceptions become HTTP responses.

    Handler hierarchy:
        DevCamperError subclasses  → their status_code (400/401/403/404/500)
        IntegrityError             → 400 Duplicate field value entered
        RequestValidationError     → 400 with the joined field messages
        HTTPException              → its status (unknown route, wrong method)
        Exception (fallback)       → 500, stack trace logged only

    Context attached to DevCamperError is logged, never returned.
    """

    @app.exception_handler(DevCamperError)
    async def handle_devcamper_error(request: Request, exc: DevCamperError):
        rid = request_id_var.get("")
        if exc.status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
        else:
            logger.info("[%s] %s: %s", rid, type(exc).__name__, exc.message)
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(IntegrityError)
    async def handle_integrity_error(request: Request, exc: IntegrityError):
        logger.warning("[%s] Integrity error: %s", request_id_var.get(""), exc.orig)
        return error_response(400, "Duplicate field value entered")

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        return error_response(400, _validation_message(exc))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", request_id_var.get(""), exc, exc_info=True)
        return error_response(500, "Server Error")


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="DevCamper API",
        description=(
            "Bootcamp directory API: bootcamps, courses, reviews and users with "
            "JWT authentication, role-based authorization, radius search and photo upload."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Middleware executes in REVERSE order of addition: the last one added
    # (rate limit) sees the request first
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Total-Count", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware)

    register_exception_handlers(app)

    app.include_router(bootcamps.router)
    app.include_router(courses.router)
    app.include_router(reviews.router)
    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(uploads.router)
    app.include_router(health.router)

    return app


# uvicorn expects `app.main:app`
app = create_app()
