"""Core data model for the sampling engine.

The relation shape is only known at call time, so it is carried as data:
a ``RelationHandle`` holds the ordered column list resolved from the
catalog, and every query is built from it.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from randomdraw.errors import SampleShortfallError

if TYPE_CHECKING:
    import polars as pl


# =============================================================================
# Column Types
# =============================================================================


class ColumnType(Enum):
    """Unified column type representation across backends."""

    INTEGER = "integer"
    FLOAT = "float"
    DECIMAL = "decimal"
    STRING = "string"
    DATE = "date"
    DATETIME = "datetime"
    TIME = "time"
    DURATION = "duration"
    BOOLEAN = "boolean"
    BINARY = "binary"
    JSON = "json"
    UNKNOWN = "unknown"


def sql_type_to_column_type(sql_type: str | None) -> ColumnType:
    """Convert a declared SQL type string to a unified ColumnType.

    Args:
        sql_type: SQL data type string, possibly empty.

    Returns:
        Corresponding ColumnType.
    """
    if not sql_type:
        return ColumnType.UNKNOWN

    sql_upper = sql_type.upper()

    # Integer types
    if any(t in sql_upper for t in ("INT", "SERIAL")):
        return ColumnType.INTEGER

    # Float types
    if any(t in sql_upper for t in ("FLOAT", "DOUBLE", "REAL")):
        return ColumnType.FLOAT

    # Decimal types
    if any(t in sql_upper for t in ("DECIMAL", "NUMERIC", "MONEY")):
        return ColumnType.DECIMAL

    # String types
    if any(t in sql_upper for t in ("CHAR", "TEXT", "CLOB")):
        return ColumnType.STRING

    # Date/time types
    if sql_upper == "DATE":
        return ColumnType.DATE
    if any(t in sql_upper for t in ("TIMESTAMP", "DATETIME")):
        return ColumnType.DATETIME
    if sql_upper.startswith("TIME"):
        return ColumnType.TIME
    if "INTERVAL" in sql_upper:
        return ColumnType.DURATION

    if "BOOL" in sql_upper:
        return ColumnType.BOOLEAN

    if any(t in sql_upper for t in ("BINARY", "BLOB", "BYTEA")):
        return ColumnType.BINARY

    if "JSON" in sql_upper:
        return ColumnType.JSON

    return ColumnType.UNKNOWN


# =============================================================================
# Relation Handle
# =============================================================================


@dataclass(frozen=True)
class ColumnInfo:
    """A column as reported by the catalog.

    Attributes:
        name: Column name, unquoted.
        position: 1-based ordinal position in the relation.
        data_type: Declared SQL type (may be empty for untyped columns).
    """

    name: str
    position: int
    data_type: str = ""

    @property
    def column_type(self) -> ColumnType:
        return sql_type_to_column_type(self.data_type)


@dataclass(frozen=True)
class RelationHandle:
    """A resolved table or view with its column list.

    Attributes:
        name: Relation name, unquoted.
        schema: Optional schema/namespace, unquoted.
        columns: Columns in declaration order.
        quoted_name: Qualified name rendered through the store's quoting.
        quoted_columns: Column names rendered through the store's quoting.
        kind: Relation kind reported by the catalog ("table", "view", ...).
    """

    name: str
    schema: str | None
    columns: tuple[ColumnInfo, ...]
    quoted_name: str
    quoted_columns: tuple[str, ...]
    kind: str | None = None

    @property
    def column_names(self) -> list[str]:
        return [c.name for c in self.columns]

    @property
    def qualified_name(self) -> str:
        """Unquoted display name."""
        if self.schema:
            return f"{self.schema}.{self.name}"
        return self.name

    @property
    def select_list(self) -> str:
        """Comma-separated quoted column list for projections."""
        return ", ".join(self.quoted_columns)

    def get_column(self, name: str) -> ColumnInfo | None:
        """Column by exact name, else by a unique case-insensitive match."""
        for column in self.columns:
            if column.name == name:
                return column
        folded = [c for c in self.columns if c.name.lower() == name.lower()]
        if len(folded) == 1:
            return folded[0]
        return None

    def quoted_column(self, name: str) -> str:
        column = self.get_column(name)
        if column is None:
            raise KeyError(name)
        return self.quoted_columns[self.columns.index(column)]


# =============================================================================
# Key Domain
# =============================================================================


class CountSource(str, Enum):
    """Where ``KeyDomain.estimated_count`` came from."""

    STATISTICS = "statistics"   # Planner statistics, cheap, may be stale
    EXACT = "exact"             # COUNT over the key column
    POSITIONAL = "positional"   # COUNT(*) backing a ROW_NUMBER() domain


@dataclass(frozen=True)
class KeyDomain:
    """Integer domain that candidates are drawn from.

    Attributes:
        min: Smallest key value (inclusive).
        max: Largest key value (inclusive).
        estimated_count: Approximate number of rows; advisory only.
        count_source: How the count was obtained.
        gaps: Oversampling factor compensating for holes in the domain.
    """

    min: int
    max: int
    estimated_count: int
    count_source: CountSource = CountSource.EXACT
    gaps: float = 1.03

    def __post_init__(self) -> None:
        if self.min > self.max:
            raise ValueError(f"min ({self.min}) must not exceed max ({self.max})")

    @property
    def span(self) -> int:
        """Number of integers in ``[min, max]``."""
        return self.max - self.min + 1

    @property
    def density(self) -> float:
        """Expected fraction of candidates that hit an existing row."""
        if self.estimated_count <= 0:
            return 1.0 / self.span
        return min(1.0, self.estimated_count / self.span)

    @property
    def count_is_exact(self) -> bool:
        return self.count_source in (CountSource.EXACT, CountSource.POSITIONAL)

    def batch_size(self, deficit: int, max_batch_size: int | None = None) -> int:
        """Number of candidates to draw to cover ``deficit`` missing rows.

        ``ceil(deficit * gaps / density)``, never below ``deficit``, never
        above ``ceil(span * gaps)`` or ``max_batch_size``.
        """
        if deficit <= 0:
            return 0
        size = math.ceil(deficit * self.gaps / self.density)
        size = min(size, math.ceil(self.span * self.gaps))
        size = max(size, deficit)
        if max_batch_size is not None:
            size = min(size, max_batch_size)
        return max(size, 1)

    def to_dict(self) -> dict[str, Any]:
        return {
            "min": self.min,
            "max": self.max,
            "estimated_count": self.estimated_count,
            "count_source": self.count_source.value,
            "gaps": self.gaps,
            "span": self.span,
        }


# =============================================================================
# Sample Result
# =============================================================================


class SampleStatus(str, Enum):
    """Terminal state of a sampling call."""

    COMPLETE = "complete"               # Exactly the requested count
    EXHAUSTED = "exhausted"             # Domain cannot yield more rows
    BUDGET_EXCEEDED = "budget_exceeded"  # Iteration or time bound reached


@dataclass
class SampleResult:
    """Rows drawn by one sampling call.

    Attributes:
        columns: Column names of the source relation, in order.
        rows: Sampled rows projected to ``columns``.
        requested: Number of rows asked for.
        status: How the call terminated.
        iterations: Number of candidate batches processed.
        candidates_drawn: Total random candidates generated.
        misses: Candidates that matched no row.
        duplicates: Hits discarded because the row was already held.
        elapsed_seconds: Wall time of the call.
        domain: The key or positional domain sampled from.
    """

    columns: list[str]
    rows: list[tuple]
    requested: int
    status: SampleStatus
    iterations: int = 0
    candidates_drawn: int = 0
    misses: int = 0
    duplicates: int = 0
    elapsed_seconds: float = 0.0
    domain: KeyDomain | None = None
    key_column: str | None = None

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self):
        return iter(self.rows)

    @property
    def is_complete(self) -> bool:
        return self.status == SampleStatus.COMPLETE

    @property
    def is_exhausted(self) -> bool:
        return self.status == SampleStatus.EXHAUSTED

    @property
    def shortfall(self) -> int:
        return self.requested - len(self.rows)

    def raise_for_status(self) -> "SampleResult":
        """Raise SampleShortfallError unless the result is complete."""
        if not self.is_complete:
            raise SampleShortfallError(
                requested=self.requested,
                collected=len(self.rows),
                status=self.status.value,
            )
        return self

    def to_dicts(self) -> list[dict[str, Any]]:
        return [dict(zip(self.columns, row)) for row in self.rows]

    def to_polars(self) -> "pl.DataFrame":
        """Convert the sampled rows to a Polars DataFrame."""
        import polars as pl

        if not self.rows:
            return pl.DataFrame({name: [] for name in self.columns})
        return pl.DataFrame(
            [list(row) for row in self.rows],
            schema=self.columns,
            orient="row",
            infer_schema_length=None,
        )

    def to_dict(self) -> dict[str, Any]:
        """Summary of the call, without the rows."""
        return {
            "requested": self.requested,
            "collected": len(self.rows),
            "status": self.status.value,
            "iterations": self.iterations,
            "candidates_drawn": self.candidates_drawn,
            "misses": self.misses,
            "duplicates": self.duplicates,
            "elapsed_seconds": self.elapsed_seconds,
            "key_column": self.key_column,
            "domain": self.domain.to_dict() if self.domain else None,
        }
