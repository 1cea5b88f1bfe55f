"""
Illustrious Cloud API Server

Entry point for the FastAPI application.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes import router as api_router
from app.core.config import get_settings
from app.core.database import dispose_engine
from app.core.errors import register_exception_handlers
from app.core.identity import SupabaseIdentityProvider
from app.core.logging import configure_logging, init_sentry
from app.core.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware

settings = get_settings()
log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.log_level, settings.log_format)
    init_sentry(settings.sentry_dsn, settings.environment, settings.app_version)

    identity = SupabaseIdentityProvider(
        base_url=settings.supabase_url,
        anon_key=settings.supabase_anon_key,
        service_role_key=settings.supabase_service_role_key,
        timeout=settings.identity_timeout_seconds,
    )
    await identity.open()
    app.state.identity = identity
    log.info("illustrious.starting", environment=settings.environment, version=settings.app_version)

    try:
        yield
    finally:
        log.info("illustrious.shutting_down")
        await identity.close()
        await dispose_engine()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Illustrious Cloud",
        description="Users, organizations, invoices and reports with per-organization access control.",
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Middleware (last added is outermost)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    register_exception_handlers(app)

    @app.get("/", tags=["System"])
    async def root():
        return {"name": settings.app_name, "version": settings.app_version}

    @app.get("/health", tags=["System"])
    async def health_check():
        """Liveness check."""
        return {"status": "ok"}

    @app.get("/ready", tags=["System"])
    async def readiness_check():
        """Readiness check."""
        return {"status": "ready"}

    app.include_router(api_router)

    return app


app = create_app()
