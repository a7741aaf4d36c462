"""FastAPI application entry point."""

from __future__ import annotations

import logging
import sys
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import Settings
from app.routers.captcha import router as captcha_router
from app.routers.generate import router as generate_router

SERVICE_NAME = "Image to PDF API"

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Structured logging configuration
# ---------------------------------------------------------------------------


def configure_logging(level: str = "INFO") -> None:
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )


# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application around one immutable Settings instance."""
    settings = settings or Settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title=SERVICE_NAME,
        description=(
            "Assembles uploaded images into a single A4 PDF, one page per image, "
            "behind an hCaptcha check. Nothing uploaded or generated outlives the request."
        ),
        version=settings.api_version,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings

    # CORS — the client is served from another origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_api_version_header(request: Request, call_next):
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("unhandled_error", path=request.url.path)
            response = JSONResponse({"detail": "Internal Server Error"}, status_code=500)
        response.headers["x-api-version"] = settings.api_version
        return response

    # -----------------------------------------------------------------------
    # Mount routers
    # -----------------------------------------------------------------------

    app.include_router(captcha_router)
    app.include_router(generate_router)

    # -----------------------------------------------------------------------
    # Health check
    # -----------------------------------------------------------------------

    @app.get("/health", tags=["system"])
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "service": SERVICE_NAME,
            "version": settings.api_version,
        }

    @app.get("/", tags=["system"])
    async def root():
        """Liveness probe."""
        return {"message": "service is up!"}

    return app


app = create_app()
