"""Row resolution.

Maps a batch of candidates to existing rows with an equality lookup.
Candidates without a matching row are dropped (inner-join semantics); that
is how gaps in the key reduce the yield of a batch.
"""

from __future__ import annotations

import logging
import uuid
from typing import Iterator, Sequence

from randomdraw.datasources.base import BaseSQLStore
from randomdraw.query import Query, build_key_lookup_query, build_positional_lookup_query
from randomdraw.resilience import RetryPolicy
from randomdraw.types import RelationHandle

logger = logging.getLogger(__name__)

POSITION_COLUMN_PREFIX = "_randomdraw_pos_"


def _chunks(values: Sequence[int], size: int) -> Iterator[Sequence[int]]:
    for start in range(0, len(values), size):
        yield values[start:start + size]


class _BaseResolver:
    def __init__(
        self,
        store: BaseSQLStore,
        retry_policy: RetryPolicy | None = None,
        chunk_size: int = 500,
    ) -> None:
        self.store = store
        self.retry_policy = retry_policy or RetryPolicy()
        self.chunk_size = chunk_size

    def _lookup(self, queries: Iterator[Query]) -> dict[int, tuple]:
        found: dict[int, tuple] = {}
        for query in queries:
            rows = self.retry_policy.execute_with_retry(self.store.fetch_rows, query)
            for row in rows:
                found[row[0]] = tuple(row[1:])
        return found


class RowResolver(_BaseResolver):
    """Resolves candidates against an integer key column.

    Example:
        resolver = RowResolver(store)
        rows = resolver.resolve(handle, "id", [3, 17, 17, 42])
        # {3: (...), 42: (...)} when 17 does not exist
    """

    def resolve(
        self,
        handle: RelationHandle,
        key_column: str,
        candidates: Sequence[int],
    ) -> dict[int, tuple]:
        """Return ``{key: row}`` for the candidates that exist.

        Rows are projected to the relation's own columns, in order.
        """
        unique = list(dict.fromkeys(candidates))
        if not unique:
            return {}
        found = self._lookup(
            build_key_lookup_query(handle, key_column, chunk, self.store.placeholder)
            for chunk in _chunks(unique, self.chunk_size)
        )
        logger.debug(
            f"Resolved {len(found)}/{len(unique)} candidate keys in {handle.qualified_name}"
        )
        return found


class PositionalRowResolver(_BaseResolver):
    """Resolves candidate positions against a ``ROW_NUMBER()`` working view.

    The position column gets a generated name that does not collide with
    any column of the relation, and it is never part of the returned rows.
    """

    def __init__(
        self,
        store: BaseSQLStore,
        retry_policy: RetryPolicy | None = None,
        chunk_size: int = 500,
    ) -> None:
        super().__init__(store, retry_policy, chunk_size)
        self._position_column: str | None = None

    def position_column(self, handle: RelationHandle) -> str:
        """Unquoted name of the synthetic position column."""
        if self._position_column is None:
            existing = set(handle.column_names)
            name = POSITION_COLUMN_PREFIX + uuid.uuid4().hex[:8]
            while name in existing:
                name = POSITION_COLUMN_PREFIX + uuid.uuid4().hex[:8]
            self._position_column = name
        return self._position_column

    def resolve(
        self,
        handle: RelationHandle,
        candidates: Sequence[int],
    ) -> dict[int, tuple]:
        """Return ``{position: row}`` for positions inside the relation."""
        unique = list(dict.fromkeys(candidates))
        if not unique:
            return {}
        position = self.store.quote_identifier(self.position_column(handle))
        order_clause = self.store.positional_order_clause(handle)
        found = self._lookup(
            build_positional_lookup_query(
                handle, position, order_clause, chunk, self.store.placeholder
            )
            for chunk in _chunks(unique, self.chunk_size)
        )
        logger.debug(
            f"Resolved {len(found)}/{len(unique)} candidate positions in {handle.qualified_name}"
        )
        return found
