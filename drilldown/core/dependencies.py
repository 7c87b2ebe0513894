"""
Request-scoped dependencies for the drilldown routers.

- DBSessionDep: one pooled asyncpg connection per request
- SettingsDep: the cached Settings object

Tests replace the pooled connection with a mock or an in-memory fake:

    app.dependency_overrides[get_db_session] = fake_session
"""

from typing import AsyncGenerator, Annotated

from fastapi import Depends
from asyncpg import Connection

from drilldown.core.config import Settings, get_settings
from drilldown.core.database import get_db_pool


async def get_db_session() -> AsyncGenerator[Connection, None]:
    """
    Borrow a connection for the lifetime of one request.

    A page fetch runs at most two statements (page, optional COUNT) on this
    connection; it goes back to the pool once the response is produced or the
    handler raises.
    """
    pool = await get_db_pool()
    async with pool.acquire() as conn:
        yield conn


def get_settings_dependency() -> Settings:
    """
    Return the cached Settings for injection into endpoints.

    Kept separate from get_settings so tests can override it through
    app.dependency_overrides without clearing the lru_cache.
    """
    return get_settings()


DBSessionDep = Annotated[Connection, Depends(get_db_session)]

SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]
