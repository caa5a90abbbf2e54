"""SQLite store implementation.

SQLite is included in Python's standard library, so no additional
dependencies are required.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from pathlib import Path

from randomdraw.datasources.base import BaseSQLStore, SQLStoreConfig
from randomdraw.errors import StoreQueryError, StoreUnavailableError
from randomdraw.query import Query
from randomdraw.types import ColumnInfo, RelationHandle

logger = logging.getLogger(__name__)

_TRANSIENT_MESSAGES = ("locked", "busy", "unable to open", "disk i/o error")


# =============================================================================
# Configuration
# =============================================================================


@dataclass
class SQLiteStoreConfig(SQLStoreConfig):
    """Configuration for SQLite stores.

    Attributes:
        database: Path to SQLite database file, or ":memory:".
        timeout: Seconds to wait on a locked database.
        isolation_level: None keeps the connection in autocommit mode so
            no transaction stays open between sampling iterations.
        uri: Interpret ``database`` as a ``file:`` URI.
    """

    database: str = ":memory:"
    timeout: float = 5.0
    isolation_level: str | None = None
    uri: bool = False


# =============================================================================
# SQLite Store
# =============================================================================


class SQLiteStore(BaseSQLStore):
    """Store for SQLite databases.

    Example:
        >>> store = SQLiteStore("data.db")
        >>> columns(store, "users")
        ['id', 'name', 'age']

        >>> # Wrap a connection you already hold (e.g. an in-memory database)
        >>> conn = sqlite3.connect(":memory:")
        >>> store = SQLiteStore.from_connection(conn)
    """

    store_type = "sqlite"
    placeholder = "?"

    def __init__(
        self,
        database: str = ":memory:",
        config: SQLiteStoreConfig | None = None,
    ) -> None:
        """Initialize SQLite store.

        Args:
            database: Path to database file or ":memory:".
            config: Optional configuration.

        Raises:
            StoreUnavailableError: If the database file does not exist.
        """
        if config is None:
            config = SQLiteStoreConfig(database=database)
        else:
            config.database = database

        if database != ":memory:" and not config.uri:
            if not Path(database).exists():
                raise StoreUnavailableError(
                    self.store_type, f"database file not found: {database}"
                )

        # Every connection to ":memory:" is a separate database
        if database == ":memory:":
            config.pool_size = 1

        super().__init__(config)
        self._database = database
        self._external_connection: sqlite3.Connection | None = None

    @classmethod
    def _default_config(cls) -> SQLiteStoreConfig:
        return SQLiteStoreConfig()

    @classmethod
    def from_connection(cls, conn: sqlite3.Connection) -> "SQLiteStore":
        """Create a store over an existing connection.

        The store reuses ``conn`` for every query and closes it on
        ``close()``.
        """
        store = cls(database=":memory:")
        store._external_connection = conn
        return store

    @property
    def database(self) -> str:
        """Get the database path."""
        return self._database

    def _create_connection(self) -> sqlite3.Connection:
        """Create a new SQLite connection."""
        if self._external_connection is not None:
            return self._external_connection

        cfg: SQLiteStoreConfig = self._config  # type: ignore
        try:
            return sqlite3.connect(
                cfg.database,
                timeout=cfg.timeout,
                isolation_level=cfg.isolation_level,
                uri=cfg.uri,
                check_same_thread=False,
            )
        except sqlite3.Error as e:
            raise StoreUnavailableError(self.store_type, str(e), cause=e) from e

    def quote_identifier(self, identifier: str) -> str:
        """Quote SQLite identifier with double quotes."""
        escaped = identifier.replace('"', '""')
        return f'"{escaped}"'

    def _driver_errors(self) -> tuple[type[Exception], ...]:
        return (sqlite3.Error,)

    def _is_transient_error(self, exc: Exception) -> bool:
        if not isinstance(exc, sqlite3.OperationalError):
            return False
        message = str(exc).lower()
        return any(token in message for token in _TRANSIENT_MESSAGES)

    # -------------------------------------------------------------------------
    # Catalog
    # -------------------------------------------------------------------------

    def fetch_columns(self, name: str, schema: str | None = None) -> list[ColumnInfo]:
        """Read columns through the ``pragma_table_info`` table function.

        pragma_table_info returns (cid, name, type, notnull, dflt_value, pk);
        the relation name is bound as a parameter.
        """
        if schema:
            query = Query(
                "SELECT cid, name, type FROM pragma_table_info(?, ?) ORDER BY cid",
                (name, schema),
            )
        else:
            query = Query(
                "SELECT cid, name, type FROM pragma_table_info(?) ORDER BY cid",
                (name,),
            )
        rows = self.fetch_rows(query)
        return [
            ColumnInfo(name=col_name, position=cid + 1, data_type=col_type or "")
            for cid, col_name, col_type in rows
        ]

    def relation_kind(self, name: str, schema: str | None = None) -> str | None:
        master = f"{self.quote_identifier(schema or 'main')}.sqlite_master"
        query = Query(f"SELECT type FROM {master} WHERE name = ?", (name,))
        return self.execute_scalar(query)

    def estimate_row_count(self, handle: RelationHandle) -> int | None:
        """Row count from ``sqlite_stat1`` (populated by ANALYZE).

        The first integer of each ``stat`` entry is the table's row count.
        Returns None when the table has never been analyzed.
        """
        stat_table = f"{self.quote_identifier(handle.schema or 'main')}.sqlite_stat1"
        query = Query(f"SELECT stat FROM {stat_table} WHERE tbl = ? LIMIT 1", (handle.name,))
        try:
            stat = self.execute_scalar(query)
        except StoreQueryError:
            # sqlite_stat1 only exists after ANALYZE
            return None
        if not stat:
            return None
        try:
            return int(str(stat).split()[0])
        except ValueError:
            logger.debug(f"Unparseable sqlite_stat1 entry for {handle.name}: {stat!r}")
            return None

    # -------------------------------------------------------------------------
    # SQLite-specific Methods
    # -------------------------------------------------------------------------

    def analyze(self, relation: str | None = None) -> None:
        """Run ANALYZE to refresh ``sqlite_stat1``."""
        with self._get_connection() as conn:
            if relation:
                conn.execute(f"ANALYZE {self.quote_identifier(relation)}")
            else:
                conn.execute("ANALYZE")

    def execute_script(self, script: str) -> None:
        """Run a DDL/DML script, e.g. to seed a database."""
        with self._get_connection() as conn:
            conn.executescript(script)

    def __repr__(self) -> str:
        return f"SQLiteStore(database={self._database!r})"
