"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from aptomizer import __version__
from aptomizer.api.routes import api_router
from aptomizer.config import AppSettings, get_settings
from aptomizer.core.errors import install_error_handlers
from aptomizer.core.logging import setup_logging
from aptomizer.core.telemetry import setup_telemetry
from aptomizer.db.init import init_database
from aptomizer.db.session import Database
from aptomizer.services.gateway import ChainGateway

logger = logging.getLogger(__name__)


def create_app(
    database: Database | None = None,
    gateway: ChainGateway | None = None,
    settings: AppSettings | None = None,
) -> FastAPI:
    """Build the application; tests pass their own database and gateway."""

    settings = settings or get_settings()
    database = database or Database(settings.database_url)
    gateway = gateway or ChainGateway(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await init_database(database)
        logger.info("Starting %s with %s", settings.app_name, settings.dict_for_logging())
        yield
        await gateway.aclose()
        await database.dispose()

    app = FastAPI(title=settings.app_name, version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database
    app.state.gateway = gateway

    setup_logging()
    setup_telemetry(app, settings, engine=database.engine)
    install_error_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["traceparent", "tracestate", "x-request-id"],
    )

    @app.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        """Return service readiness metadata."""

        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "network": settings.network,
        }

    app.include_router(api_router)
    return app


__all__ = ["create_app"]
