"""Key-range estimation.

``min`` and ``max`` always come from exact aggregates. The row count comes
from planner statistics when available (cheap, possibly stale) and from an
exact ``COUNT`` otherwise. The count only biases batch sizing.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar

from randomdraw.config import DEFAULT_GAPS
from randomdraw.datasources.base import BaseSQLStore
from randomdraw.errors import InvalidKeyColumnError
from randomdraw.query import build_count_query, build_min_max_query
from randomdraw.resilience import RetryPolicy
from randomdraw.types import ColumnType, CountSource, KeyDomain, RelationHandle

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class KeyRangeEstimator:
    """Computes the integer domain candidates are drawn from.

    Example:
        estimator = KeyRangeEstimator(store)
        domain = estimator.estimate(handle, "id", gaps=1.03)
    """

    def __init__(
        self,
        store: BaseSQLStore,
        retry_policy: RetryPolicy | None = None,
        use_statistics: bool = True,
    ) -> None:
        self.store = store
        self.retry_policy = retry_policy or RetryPolicy()
        self.use_statistics = use_statistics

    def _call(self, func: Callable[..., T], *args: Any) -> T:
        return self.retry_policy.execute_with_retry(func, *args)

    def validate_key_column(self, handle: RelationHandle, key_column: str) -> None:
        """Reject key columns that are absent or declared non-integer.

        Columns without a declared type (common for SQLite views) pass here
        and are checked against the aggregate values in ``estimate``.
        """
        column = handle.get_column(key_column)
        if column is None:
            raise InvalidKeyColumnError(
                handle.qualified_name, key_column, "column not found"
            )
        column_type = column.column_type
        if column_type not in (ColumnType.INTEGER, ColumnType.UNKNOWN):
            raise InvalidKeyColumnError(
                handle.qualified_name,
                key_column,
                f"declared type {column.data_type!r} is not an integer type",
            )

    def estimate(
        self,
        handle: RelationHandle,
        key_column: str,
        gaps: float = DEFAULT_GAPS,
    ) -> KeyDomain | None:
        """Estimate ``{min, max, estimated_count}`` for an integer key.

        Returns:
            The key domain, or None when the relation has no non-null key.

        Raises:
            InvalidKeyColumnError: If the column is absent or not integer.
        """
        self.validate_key_column(handle, key_column)

        rows = self._call(self.store.fetch_rows, build_min_max_query(handle, key_column))
        key_min, key_max = rows[0] if rows else (None, None)
        if key_min is None or key_max is None:
            logger.info(f"{handle.qualified_name}.{key_column} has no values to sample")
            return None

        if not (_is_integer(key_min) and _is_integer(key_max)):
            raise InvalidKeyColumnError(
                handle.qualified_name,
                key_column,
                f"values are not integers (min={key_min!r}, max={key_max!r})",
            )

        estimated_count: int | None = None
        source = CountSource.EXACT
        if self.use_statistics:
            estimated_count = self._call(self.store.estimate_row_count, handle)
            if estimated_count is not None:
                source = CountSource.STATISTICS

        if estimated_count is None:
            estimated_count = int(
                self._call(
                    self.store.execute_scalar,
                    build_count_query(handle, key_column),
                )
                or 0
            )
            source = CountSource.EXACT

        domain = KeyDomain(
            min=key_min,
            max=key_max,
            estimated_count=estimated_count,
            count_source=source,
            gaps=gaps,
        )
        logger.debug(
            f"Key domain for {handle.qualified_name}.{key_column}: "
            f"[{domain.min}, {domain.max}] span={domain.span} "
            f"count~{domain.estimated_count} ({source.value})"
        )
        return domain

    def positional(self, handle: RelationHandle, gaps: float = DEFAULT_GAPS) -> KeyDomain | None:
        """Domain ``[1, COUNT(*)]`` for the keyless path.

        Positions are dense, so the count must be exact; statistics are
        never used here.
        """
        count = int(
            self._call(self.store.execute_scalar, build_count_query(handle)) or 0
        )
        if count == 0:
            logger.info(f"{handle.qualified_name} is empty")
            return None
        return KeyDomain(
            min=1,
            max=count,
            estimated_count=count,
            count_source=CountSource.POSITIONAL,
            gaps=gaps,
        )


def estimate(
    store: BaseSQLStore,
    handle: RelationHandle,
    key_column: str,
    gaps: float = DEFAULT_GAPS,
    use_statistics: bool = True,
) -> KeyDomain | None:
    """Estimate the key domain of ``handle.key_column``."""
    return KeyRangeEstimator(store, use_statistics=use_statistics).estimate(
        handle, key_column, gaps
    )
