"""
testworlds FastAPI application.

Dev server exposing the world routes. Never deployed with TEST_WORLDS_ENABLED.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from testworlds import db
from testworlds.config import settings
from testworlds.routes import worlds as world_routes

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Open the database pool when one is configured, close it on shutdown.

    Without DATABASE_URL the catalog and context routes still work; only
    reseeding on activation needs the pool.
    """
    if settings.DATABASE_URL:
        await db.init_pool()
        logger.info("Database pool initialized")
    else:
        logger.warning("DATABASE_URL not set, world seeding unavailable")

    yield

    await db.close_pool()


app = FastAPI(
    title="testworlds",
    docs_url=None,
    redoc_url=None,
    lifespan=lifespan,
)

app.include_router(world_routes.router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok", "test_worlds_enabled": settings.TEST_WORLDS_ENABLED}
