"""SQL stores for randomdraw.

Supported databases:
- SQLite (built-in)
- PostgreSQL (requires: pip install psycopg2-binary)

The PostgreSQL driver is imported when a PostgreSQLStore is created, so
this package imports without it.
"""

from randomdraw.datasources.base import (
    BaseSQLStore,
    SQLConnectionPool,
    SQLStoreConfig,
)
from randomdraw.datasources.factory import get_store
from randomdraw.datasources.postgresql import PostgreSQLStore, PostgreSQLStoreConfig
from randomdraw.datasources.sqlite import SQLiteStore, SQLiteStoreConfig

__all__ = [
    "BaseSQLStore",
    "SQLConnectionPool",
    "SQLStoreConfig",
    "SQLiteStore",
    "SQLiteStoreConfig",
    "PostgreSQLStore",
    "PostgreSQLStoreConfig",
    "get_store",
]
