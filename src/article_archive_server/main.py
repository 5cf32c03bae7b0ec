"""
Archive Server Application Entry Point

This module defines the FastAPI application instance, registers all routers,
configures global exception handling, and provides a test-friendly application
factory.

Design Goals
------------
- Deterministic startup
- Explicit dependency initialization order (store -> repositories -> engine)
- Store lifecycle owned here, not by the repositories
- Centralized router registration
- Global exception safety net
- Test-friendly via create_app()
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .api import article_routes, auth_routes, health_routes
from .api.dependencies import ArchiveServices, build_services
from .config import settings
from .core.errors import register_exception_handlers
from .store import build_record_store


logger = logging.getLogger("archive.app")


# ---------------------------------------------------------------------
# Application Factory (Test-Friendly)
# ---------------------------------------------------------------------

def create_app(services: Optional[ArchiveServices] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Parameters
    ----------
    services : Optional[ArchiveServices]
        Pre-built services to serve. When omitted, the record store selected
        by settings is built at startup and closed at shutdown.

    Returns
    -------
    FastAPI
        Fully configured FastAPI application.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Starting article-archive-server")

        # Touch critical secrets to force validation now (not at first use)
        _ = settings.jwt_secret.get_secret_value()

        if services is not None:
            app.state.services = services
            yield
            return

        store = await build_record_store(settings)
        app.state.services = build_services(store, settings)
        logger.info("Record store ready (%s backend)", settings.store_backend)

        try:
            yield
        finally:
            logger.info("Shutting down article-archive-server")
            await store.close()

    app = FastAPI(
        title="article-archive-server",
        version=__version__,
        lifespan=lifespan,
    )

    # --------------------------------------------------------------
    # Middleware
    # --------------------------------------------------------------

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    # --------------------------------------------------------------
    # Global Exception Handling
    # --------------------------------------------------------------

    register_exception_handlers(app)

    # --------------------------------------------------------------
    # Router Registration
    # --------------------------------------------------------------

    app.include_router(health_routes.router)
    app.include_router(auth_routes.router)
    app.include_router(article_routes.router)

    return app


# ---------------------------------------------------------------------
# Default Application Instance (for Uvicorn/Gunicorn)
# ---------------------------------------------------------------------

app = create_app()
