"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (here: the database engine).
Middleware, CORS, error handlers and routers all registered here.

Everything a request needs hangs off app.state (settings, engine,
session factory), so two apps with different settings can live in one
process. Tests rely on that.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncEngine

from tradeboard import __version__
from tradeboard.api import api_router
from tradeboard.config import Settings, settings as default_settings
from tradeboard.db.engine import build_engine, build_session_factory
from tradeboard.errors import register_error_handlers
from tradeboard.log_config import configure_logging
from tradeboard.middleware.request_id import RequestIdMiddleware
from tradeboard.middleware.security import SecurityHeadersMiddleware

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: FastAPI lifespan replaces on_event("startup") / on_event("shutdown").
    Anything before `yield` runs at startup, after `yield` runs at shutdown.
    """
    app_settings: Settings = app.state.settings
    logger.info(
        "tradeboard.starting",
        version=__version__,
        environment=app_settings.environment,
        port=app_settings.port,
    )

    yield

    # Shutdown
    logger.info("tradeboard.shutdown")
    await app.state.engine.dispose()


def create_app(
    settings: Optional[Settings] = None,
    engine: Optional[AsyncEngine] = None,
) -> FastAPI:
    """Build and return the FastAPI application.

    `engine` is for callers that already own one (tests with an
    in-memory SQLite database); otherwise it is built from settings.
    """
    settings = settings or default_settings
    configure_logging(settings)

    app = FastAPI(
        title="Tradeboard",
        description="Client, project and task management for trade companies",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
    )

    if engine is None:
        engine = build_engine(settings.database_url, echo=settings.debug)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)

    register_error_handlers(app)

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → Security → RequestId → handler

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    # Mount API routes
    app.include_router(api_router, prefix=settings.api_prefix)

    return app


# Default app instance (used by uvicorn: tradeboard.main:app)
app = create_app()
