"""
FastAPI application for the Drilldown Query API.

Run locally:
    uvicorn drilldown.main:app --reload

Startup opens the asyncpg pool; a failure there is logged and the pool is
created on the first /api/query request instead, so /health keeps answering
while the database is down.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from drilldown import __version__
from drilldown.api import query_router
from drilldown.core.config import get_settings
from drilldown.core.database import close_db, init_db


settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Open the connection pool on startup and close it on shutdown."""
    logger.info(f"Drilldown Query API {__version__} starting")
    try:
        await init_db()
    except Exception as e:
        logger.error(f"Database pool unavailable at startup: {e}")

    yield

    try:
        await close_db()
    except Exception as e:
        logger.error(f"Error closing database pool: {e}")
    logger.info("Drilldown Query API stopped")


app = FastAPI(
    title="Drilldown Query API",
    version=__version__,
    description=(
        "Filtered, keyset-paginated drilldown over KPI values, "
        "school aggregates and cross-school comparisons."
    ),
    lifespan=lifespan,
)

# Read-only API: GET is the only method browsers need
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)

app.include_router(query_router, tags=["query"])


@app.get("/health")
async def health_check():
    """Liveness probe. Does not touch the database."""
    return {"status": "healthy"}


@app.get("/")
async def root():
    return {
        "name": "Drilldown Query API",
        "version": __version__,
        "docs": "/docs",
        "entities": "/api/query/entities",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("drilldown.main:app", host="0.0.0.0", port=8000, reload=True)
