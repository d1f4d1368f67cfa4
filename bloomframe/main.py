"""
BloomFrame Backend — FastAPI Application Factory
===================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() wires middleware, exception handlers and routers;
       uvicorn serves the module-level `app` (uvicorn bloomframe.main:app).

Application Architecture:
    ┌─────────────────────────────────────────────────────────┐
    │                     FastAPI App                         │
    │                                                         │
    │  Middleware Chain:                                      │
    │  ┌──────────┐ ┌─────────┐ ┌────────┐ ┌────────┐         │
    │  │  Req ID  │→│ Logging │→│  GZip  │→│  CORS  │         │
    │  └──────────┘ └─────────┘ └────────┘ └────────┘         │
    │                                                         │
    │  Routes:                                                │
    │  ┌──────────────────────┐ ┌───────────────────────────┐ │
    │  │ POST /api/invoice/*  │ │ POST /api/email/*         │ │
    │  ├──────────────────────┤ ├───────────────────────────┤ │
    │  │ GET /api/export/*    │ │ GET /health               │ │
    │  └──────────────────────┘ └───────────────────────────┘ │
    │                                                         │
    │  Exception Handlers:                                    │
    │  ┌────────────────────────────────────────────────────┐ │
    │  │ BloomFrameError → status_code │ Exception → 500    │ │
    │  └────────────────────────────────────────────────────┘ │
    └─────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:   logging, configuration check (logged, never fatal)
    Shutdown:  dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from bloomframe import __version__
from bloomframe.config import settings
from bloomframe.database import dispose_engine
from bloomframe.exceptions import BloomFrameError
from bloomframe.middleware.logging import RequestLoggingMiddleware
from bloomframe.middleware.request_id import RequestIDMiddleware, current_request_id
from bloomframe.routes import email, export, health, invoice

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once, before anything else logs.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
        force=True,
    )

    # Per-operation chatter from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("BloomFrame Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Previews and exports still work without mail settings
        logger.error("Configuration error: %s", str(e))
        logger.error("Fix the configuration and restart the server.")

    logger.info("Invoice template: %s", settings.invoice_template_path)
    logger.info("PDF converter: %s", settings.invoice_pdf_bin)
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("BloomFrame Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_body(exc: BloomFrameError, rid: str) -> Dict[str, Any]:
    """JSON envelope shared by every application error response."""
    body: Dict[str, Any] = {
        "ok": False,
        "error": exc.message,
        "details": exc.details,
        "request_id": rid,
    }
    body.update(exc.extra_fields())
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map the BloomFrameError hierarchy onto HTTP responses.

    Each exception class carries its own status_code, so a single handler
    covers the whole hierarchy. 4xx is logged at WARNING, 5xx at ERROR with
    the exception context. Anything else becomes a generic 500 with the
    stack trace logged server-side only.
    """

    @app.exception_handler(BloomFrameError)
    async def handle_bloomframe_error(request: Request, exc: BloomFrameError):
        rid = current_request_id()
        if exc.status_code >= 500:
            logger.error(
                "[%s] %s: %s | details=%s | context=%s",
                rid,
                type(exc).__name__,
                exc.message,
                exc.details,
                exc.context,
            )
        else:
            logger.warning("[%s] %s: %s", rid, type(exc).__name__, exc.message)

        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc, rid),
            headers=headers,
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = current_request_id()
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "ok": False,
                "error": "An unexpected error occurred. Please try again or contact support.",
                "details": None,
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="BloomFrame API",
        description=(
            "Invoice previews, invoice and recommendation emails, and order "
            "exports for a flower-preservation framing studio."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Last added runs first: RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[
            "X-Request-ID",
            "Content-Disposition",
        ],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(invoice.router)
    app.include_router(email.router)
    app.include_router(export.router)
    app.include_router(health.router)

    return app


app = create_app()
