"""Base classes for SQL stores.

A store wraps one database: it hands out pooled connections, quotes
identifiers, runs parameterized queries and answers the catalog questions
the sampler needs (columns, relation kind, row-count statistics).
Relations are passed per call as ``RelationHandle`` values; the store keeps
no per-relation state.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from queue import Empty, Full, Queue
from threading import Lock
from typing import Any, Callable, Iterator

from randomdraw.errors import StoreQueryError, StoreUnavailableError
from randomdraw.query import Query
from randomdraw.types import ColumnInfo, RelationHandle

logger = logging.getLogger(__name__)


# =============================================================================
# Configuration
# =============================================================================


@dataclass
class SQLStoreConfig:
    """Configuration for SQL stores.

    Attributes:
        name: Optional custom name for the store.
        pool_size: Number of connections in the pool.
        pool_timeout: Timeout for acquiring a connection from pool.
        schema_name: Default schema for unqualified relation names.
    """

    name: str | None = None
    pool_size: int = 2
    pool_timeout: float = 30.0
    schema_name: str | None = None


# =============================================================================
# Connection Pool
# =============================================================================


class SQLConnectionPool:
    """Thread-safe connection pool for SQL databases.

    Example:
        >>> pool = SQLConnectionPool(create_connection, size=2)
        >>> with pool.acquire() as conn:
        ...     cursor = conn.cursor()
        ...     cursor.execute("SELECT 1")
    """

    def __init__(
        self,
        connection_factory: Callable[[], Any],
        size: int = 2,
        timeout: float = 30.0,
        store_type: str = "sql",
    ) -> None:
        """Initialize connection pool.

        Args:
            connection_factory: Callable that creates a new connection.
            size: Maximum number of connections.
            timeout: Timeout for acquiring a connection.
            store_type: Store name used in error messages.
        """
        self._factory = connection_factory
        self._size = size
        self._timeout = timeout
        self._store_type = store_type
        self._pool: Queue = Queue(maxsize=size)
        self._lock = Lock()
        self._created = 0
        self._closed = False
        self._discarded: set[int] = set()

    def _create_connection(self) -> Any:
        """Create a new connection if the pool has room."""
        with self._lock:
            if self._created < self._size:
                conn = self._factory()
                self._created += 1
                return conn
        return None

    @contextmanager
    def acquire(self) -> Iterator[Any]:
        """Acquire a connection from the pool.

        Yields:
            Database connection.

        Raises:
            StoreUnavailableError: If unable to acquire a connection.
        """
        if self._closed:
            raise StoreUnavailableError(self._store_type, "connection pool is closed")

        try:
            conn = self._pool.get_nowait()
        except Empty:
            conn = self._create_connection()

            if conn is None:
                # Pool is full, wait for available connection
                try:
                    conn = self._pool.get(timeout=self._timeout)
                except Empty:
                    raise StoreUnavailableError(
                        self._store_type,
                        f"timeout waiting for connection after {self._timeout}s",
                    )

        try:
            yield conn
        finally:
            if id(conn) in self._discarded:
                self._discarded.discard(id(conn))
            elif self._closed:
                self._close_quietly(conn)
            else:
                try:
                    self._pool.put_nowait(conn)
                except Full:
                    self._close_quietly(conn)

    def discard(self, conn: Any) -> None:
        """Drop a broken connection so a fresh one is created next time."""
        with self._lock:
            self._created = max(0, self._created - 1)
            self._discarded.add(id(conn))
        self._close_quietly(conn)

    def close(self) -> None:
        """Close all connections in the pool."""
        self._closed = True
        while True:
            try:
                conn = self._pool.get_nowait()
            except Empty:
                break
            self._close_quietly(conn)

    def _close_quietly(self, conn: Any) -> None:
        try:
            conn.close()
        except Exception as e:
            logger.debug(f"Ignoring error while closing {self._store_type} connection: {e}")

    @property
    def size(self) -> int:
        """Get pool size."""
        return self._size

    @property
    def available(self) -> int:
        """Get number of idle connections."""
        return self._pool.qsize()


# =============================================================================
# Abstract Base SQL Store
# =============================================================================


class BaseSQLStore(ABC):
    """Abstract base class for SQL stores.

    Subclasses must implement:
    - _create_connection(): Create a database connection
    - quote_identifier(): Quote a table/column name
    - fetch_columns(): Read a relation's columns from the catalog
    - _is_transient_error(): Classify driver exceptions
    """

    store_type = "sql"
    placeholder = "?"

    def __init__(self, config: SQLStoreConfig | None = None) -> None:
        self._config = config or self._default_config()
        self._pool: SQLConnectionPool | None = None

    @classmethod
    def _default_config(cls) -> SQLStoreConfig:
        return SQLStoreConfig()

    @property
    def config(self) -> SQLStoreConfig:
        return self._config

    @property
    def name(self) -> str:
        """Get the store name."""
        if self._config.name:
            return self._config.name
        return self.store_type

    @property
    def default_schema(self) -> str | None:
        return self._config.schema_name

    # -------------------------------------------------------------------------
    # Abstract Methods
    # -------------------------------------------------------------------------

    @abstractmethod
    def _create_connection(self) -> Any:
        """Create a new database connection."""

    @abstractmethod
    def quote_identifier(self, identifier: str) -> str:
        """Quote a SQL identifier (table/column name).

        Args:
            identifier: The identifier to quote.

        Returns:
            Quoted identifier.
        """

    @abstractmethod
    def fetch_columns(self, name: str, schema: str | None = None) -> list[ColumnInfo]:
        """Read a relation's columns in declaration order.

        Returns an empty list when the relation does not exist.
        """

    @abstractmethod
    def _is_transient_error(self, exc: Exception) -> bool:
        """Whether a driver exception is worth retrying."""

    # -------------------------------------------------------------------------
    # Optional Hooks
    # -------------------------------------------------------------------------

    def relation_kind(self, name: str, schema: str | None = None) -> str | None:
        """Catalog kind of the relation ("table", "view", ...), if known."""
        return None

    def estimate_row_count(self, handle: RelationHandle) -> int | None:
        """Cheap row-count estimate from planner statistics, if available."""
        return None

    def positional_order_clause(self, handle: RelationHandle) -> str:
        """Window ordering that keeps ``ROW_NUMBER()`` stable across queries."""
        return ""

    def quote_relation(self, name: str, schema: str | None = None) -> str:
        """Quote a possibly schema-qualified relation name."""
        if schema:
            return f"{self.quote_identifier(schema)}.{self.quote_identifier(name)}"
        return self.quote_identifier(name)

    def _driver_errors(self) -> tuple[type[Exception], ...]:
        """Driver exception classes to translate into store errors."""
        return (Exception,)

    # -------------------------------------------------------------------------
    # Connection Management
    # -------------------------------------------------------------------------

    def connect(self) -> None:
        """Initialize connection pool."""
        if self._pool is None:
            self._pool = SQLConnectionPool(
                connection_factory=self._create_connection,
                size=self._config.pool_size,
                timeout=self._config.pool_timeout,
                store_type=self.store_type,
            )

    def close(self) -> None:
        """Close connection pool."""
        if self._pool is not None:
            self._pool.close()
            self._pool = None

    def __enter__(self) -> "BaseSQLStore":
        self.connect()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @contextmanager
    def _get_connection(self) -> Iterator[Any]:
        """Get a connection from the pool."""
        if self._pool is None:
            self.connect()

        with self._pool.acquire() as conn:
            yield conn

    # -------------------------------------------------------------------------
    # Query Execution
    # -------------------------------------------------------------------------

    def _run(self, query: Query | str, fetch: str) -> Any:
        if isinstance(query, str):
            query = Query(query)

        with self._get_connection() as conn:
            try:
                cursor = conn.cursor()
                try:
                    if query.params:
                        cursor.execute(query.text, query.params)
                    else:
                        cursor.execute(query.text)
                    if fetch == "one":
                        return cursor.fetchone()
                    columns = [desc[0] for desc in cursor.description or ()]
                    return columns, cursor.fetchall()
                finally:
                    cursor.close()
            except self._driver_errors() as e:
                if self._is_transient_error(e):
                    if self._pool is not None:
                        self._pool.discard(conn)
                    raise StoreUnavailableError(self.store_type, str(e), cause=e) from e
                raise StoreQueryError(
                    self.store_type, str(e), query=query.text, cause=e
                ) from e

    def fetch_rows(self, query: Query | str) -> list[tuple]:
        """Execute a query and return rows as tuples."""
        _, rows = self._run(query, fetch="all")
        return [tuple(row) for row in rows]

    def execute_query(self, query: Query | str) -> list[dict[str, Any]]:
        """Execute a query and return rows as dictionaries."""
        columns, rows = self._run(query, fetch="all")
        return [dict(zip(columns, row)) for row in rows]

    def execute_scalar(self, query: Query | str) -> Any:
        """Execute a query and return the first column of the first row."""
        row = self._run(query, fetch="one")
        return row[0] if row else None

    def validate_connection(self) -> bool:
        """Validate database connection."""
        try:
            self.execute_scalar("SELECT 1")
            return True
        except (StoreQueryError, StoreUnavailableError):
            return False
