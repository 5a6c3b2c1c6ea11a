"""
Composer FastAPI application.

Entry point for the API server.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from backend import db
from backend.config import settings
from backend.routes import designer as designer_routes
from backend.routes import gateway as gateway_routes
from backend.routes import telemetry as telemetry_routes
from backend.services.gateway import catalog_registry
from backend.services.telemetry import telemetry_manager

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI application.

    Handles startup and shutdown logic:
    - Initialize database pool (only when DATABASE_URL is set)
    - Flush and stop telemetry collectors on shutdown
    - Close database pool on shutdown
    """
    # Startup
    if settings.DATABASE_URL:
        await db.init_pool()
    else:
        logger.warning("DATABASE_URL not set: db reads and the action audit log are disabled")

    logger.info("Composer started (%s), catalogs: %s", settings.ENVIRONMENT, ", ".join(catalog_registry.namespaces()))

    yield

    # Shutdown
    await telemetry_manager.stop_all()
    await db.close_pool()
    logger.info("Composer stopped")


app = FastAPI(
    title="Composer",
    docs_url=None,
    redoc_url=None,
    lifespan=lifespan,
)

# Register routes
app.include_router(designer_routes.router)
app.include_router(gateway_routes.router)
app.include_router(telemetry_routes.router)


@app.get("/health")
async def health():
    """Health check endpoint for uptime monitoring."""
    return {"status": "ok"}
