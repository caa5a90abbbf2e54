"""Main API functions for randomdraw."""

from __future__ import annotations

from typing import Any

from randomdraw.config import (
    DEFAULT_GAPS,
    DEFAULT_KEYED_LIMIT,
    DEFAULT_KEYLESS_LIMIT,
    SamplerConfig,
)
from randomdraw.datasources.base import BaseSQLStore
from randomdraw.introspect import columns
from randomdraw.sampler import RandomSampler
from randomdraw.types import SampleResult


def get_column_names(store: BaseSQLStore, relation: str, schema: str | None = None) -> list[str]:
    """Column names of a relation in declaration order.

    Args:
        store: Store holding the relation.
        relation: Table or view name.
        schema: Optional schema name.

    Returns:
        Ordered list of column names.

    Example:
        >>> get_column_names(store, "users")
        ['id', 'name', 'email']
    """
    return columns(store, relation, schema)


def idx_random_select(
    store: BaseSQLStore,
    relation: str,
    key_column: str,
    n: int = DEFAULT_KEYED_LIMIT,
    gaps: float = DEFAULT_GAPS,
    config: SamplerConfig | None = None,
    **overrides: Any,
) -> SampleResult:
    """Randomly sample rows using an integer key column.

    Args:
        store: Store holding the relation.
        relation: Table or view name.
        key_column: Integer column uniquely identifying rows.
        n: Number of rows wanted.
        gaps: Oversampling factor compensating for holes in the key.
        config: Optional sampler configuration.
        **overrides: SamplerConfig fields to override (e.g. seed=7).

    Returns:
        SampleResult with the sampled rows and the terminal status.

    Example:
        >>> result = idx_random_select(store, "orders", "order_id", n=500)
        >>> len(result)
        500
    """
    cfg = (config or SamplerConfig()).with_overrides(**overrides)
    return RandomSampler(store, cfg).sample(relation, n, key_column=key_column, gaps=gaps)


def random_select(
    store: BaseSQLStore,
    relation: str,
    n: int = DEFAULT_KEYLESS_LIMIT,
    config: SamplerConfig | None = None,
    **overrides: Any,
) -> SampleResult:
    """Randomly sample rows from a relation without a usable key.

    Rows are addressed by position, so the result never contains a
    column the relation does not have.

    Example:
        >>> result = random_select(store, "events", n=10)
        >>> result.columns == get_column_names(store, "events")
        True
    """
    cfg = (config or SamplerConfig()).with_overrides(**overrides)
    return RandomSampler(store, cfg).sample(relation, n, gaps=cfg.gaps)
