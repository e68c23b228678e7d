"""
Points Ledger API Server

Entry point for the FastAPI application.
"""

from contextlib import asynccontextmanager
from urllib.parse import urlsplit

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException

from app.core.config import get_settings
from app.core.errors import LedgerError, UpstreamFailure, ValidationError, upstream_message
from app.core.logging import configure_logging
from app.core.middleware import CSRFMiddleware, SecurityHeadersMiddleware, error_response
from app.api.v1 import router as api_v1_router
from app.api.v1.auth import router as auth_router

settings = get_settings()
log = structlog.get_logger()


def _origin(url: str) -> str:
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}" if parts.scheme and parts.netloc else ""


def register_exception_handlers(app: FastAPI) -> None:
    """Render domain and store errors with their specific message."""

    @app.exception_handler(LedgerError)
    async def ledger_error_handler(request: Request, exc: LedgerError):
        log.info("request.rejected", path=request.url.path, code=exc.code, message=exc.message)
        errors = exc.errors if isinstance(exc, ValidationError) else None
        return error_response(exc.code, exc.message, exc.status, errors)

    @app.exception_handler(SQLAlchemyError)
    async def store_error_handler(request: Request, exc: SQLAlchemyError):
        failure = UpstreamFailure(upstream_message(exc))
        log.error("store.failure", path=request.url.path, error=failure.message)
        return error_response(failure.code, failure.message, failure.status)

    @app.exception_handler(HTTPException)
    async def http_error_handler(request: Request, exc: HTTPException):
        codes = {401: "UNAUTHENTICATED", 403: "FORBIDDEN", 404: "NOT_FOUND"}
        return error_response(codes.get(exc.status_code, "HTTP_ERROR"), str(exc.detail), exc.status_code)


@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info("Points Ledger starting", database=urlsplit(settings.database_url).scheme)
    yield
    log.info("Points Ledger shutting down")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging(settings.log_level, settings.log_format)

    app = FastAPI(
        title="Points Ledger",
        description="Member contributions, points leaderboard and role-gated administration.",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Middleware, outermost first
    storage_origin = _origin(settings.storage_public_url)
    app.add_middleware(
        SecurityHeadersMiddleware,
        image_sources=[storage_origin] if storage_origin else [],
    )
    app.add_middleware(CSRFMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "X-CSRF-Token"],
    )

    register_exception_handlers(app)

    app.include_router(auth_router, prefix="/auth", tags=["Authentication"])
    app.include_router(api_v1_router, prefix="/api/v1")

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint for liveness probes."""
        return {"status": "ok"}

    @app.get("/ready", tags=["System"])
    async def readiness_check():
        """Readiness check endpoint."""
        return {"status": "ready"}

    return app


app = create_app()
