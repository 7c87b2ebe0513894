"""
Process-wide asyncpg pool.

The pool is the only shared resource in the service. Page fetches borrow a
connection through drilldown.core.dependencies.get_db_session and return it
when the request ends; nothing else is cached between requests.

Lifecycle:
    startup   -> init_db()      (called from the FastAPI lifespan)
    requests  -> get_db_pool()  (creates the pool on first use if startup failed)
    shutdown  -> close_db()

Sizing and statement timeout come from Settings (db_pool_min_size,
db_pool_max_size, db_command_timeout).
"""

import logging
from typing import Optional

import asyncpg
from asyncpg import Pool

from drilldown.core.config import get_settings


logger = logging.getLogger(__name__)

_pool: Optional[Pool] = None


async def init_db() -> Pool:
    """
    Create the pool if it does not exist yet and return it.

    Raises:
        asyncpg.PostgresError: The server rejected the connection.
        OSError: The database host could not be reached.
    """
    global _pool

    if _pool is not None:
        return _pool

    settings = get_settings()
    _pool = await asyncpg.create_pool(
        dsn=settings.database_url,
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
        command_timeout=settings.db_command_timeout,
    )
    logger.info(
        f"Created asyncpg pool (min={settings.db_pool_min_size}, "
        f"max={settings.db_pool_max_size}, timeout={settings.db_command_timeout}s)"
    )
    return _pool


async def get_db_pool() -> Pool:
    """Return the pool, creating it on first use."""
    if _pool is None:
        return await init_db()
    return _pool


async def close_db() -> None:
    """Close the pool and forget it; a later get_db_pool() starts a new one."""
    global _pool

    if _pool is None:
        return
    pool, _pool = _pool, None
    await pool.close()
    logger.info("asyncpg pool closed")
