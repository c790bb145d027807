"""Application factory for the FastAPI app.

Centralizes app construction (state, lifespan, middleware, handlers,
routers) so tests can build isolated instances with their own settings,
database and rate limiter.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.adapters.rate_limit import LimiterRegistry, LimiterSweeper
from app.api.routes import articles_router, health_router
from app.core.config import Settings, settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.openapi import apply_openapi_customizations
from app.core.rate_limit import rate_limit_middleware
from app.db.session import (
    create_db_engine,
    get_session_maker,
    init_db,
    verify_connection,
)

logger = logging.getLogger(__name__)

CORS_ALLOWED_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
CORS_ALLOWED_HEADERS = ["Authorization", "Content-Type"]
CORS_EXPOSED_HEADERS = ["Content-Length"]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the schema if configured, run the limiter sweeper, dispose the engine."""
    app_settings: Settings = app.state.settings

    verify_connection(app.state.engine)
    if app_settings.app.should_auto_migrate:
        init_db(app.state.engine)

    await app.state.limiter_sweeper.start()
    logger.info(
        "app.startup",
        extra={
            "environment": app_settings.app.environment,
            "port": app_settings.app.port,
        },
    )
    try:
        yield
    finally:
        await app.state.limiter_sweeper.stop()
        app.state.engine.dispose()
        logger.info("app.shutdown")


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        app_settings: Settings to use; defaults to the process-wide settings.

    Returns:
        Configured FastAPI app. Shared resources live on ``app.state``:
        ``settings``, ``engine``, ``session_factory``, ``limiter_registry``
        and ``limiter_sweeper``.
    """
    app_settings = app_settings or settings

    # Logging first so subsequent init logs are formatted as desired
    configure_logging(app_settings.log)

    app = FastAPI(
        title="Content Service",
        description=(
            "Article CRUD API with per-client rate limiting, JWT bearer "
            "authentication and owner-only mutations."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    engine = create_db_engine(app_settings.db)
    registry = LimiterRegistry()
    app.state.settings = app_settings
    app.state.engine = engine
    app.state.session_factory = get_session_maker(engine)
    app.state.limiter_registry = registry
    app.state.limiter_sweeper = LimiterSweeper(registry)

    # Middleware (last added runs first): request id, rate limit, CORS
    cors_origin = app_settings.app.resolved_cors_origin
    if cors_origin:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[cors_origin],
            allow_methods=CORS_ALLOWED_METHODS,
            allow_headers=CORS_ALLOWED_HEADERS,
            allow_credentials=cors_origin != "*",
            expose_headers=CORS_EXPOSED_HEADERS,
        )
    app.middleware("http")(rate_limit_middleware)
    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(articles_router)

    apply_openapi_customizations(app)

    logger.debug("app.created", extra={"title": app.title})
    return app
