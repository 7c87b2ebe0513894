"""
Infrastructure shared by the drilldown routers and services.

    from drilldown.core import DBSessionDep, DataAccessError, get_settings
"""

from drilldown.core.config import Settings, get_settings
from drilldown.core.database import close_db, get_db_pool, init_db
from drilldown.core.dependencies import (
    DBSessionDep,
    SettingsDep,
    get_db_session,
    get_settings_dependency,
)
from drilldown.core.exceptions import (
    DataAccessError,
    InvalidSortField,
    QueryEngineError,
)

__all__ = [
    # config
    'Settings',
    'get_settings',
    # pool
    'init_db',
    'get_db_pool',
    'close_db',
    # request dependencies
    'DBSessionDep',
    'SettingsDep',
    'get_db_session',
    'get_settings_dependency',
    # errors
    'QueryEngineError',
    'InvalidSortField',
    'DataAccessError',
]
