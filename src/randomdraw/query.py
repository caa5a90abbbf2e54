"""Parameterized query builders.

Identifiers come only from a ``RelationHandle`` (already rendered through
the store's quoting function) and values are only ever bound as
parameters. No builder here interpolates a caller-supplied value into the
query text.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

from randomdraw.types import RelationHandle


@dataclass(frozen=True)
class Query:
    """SQL text plus its bound parameters."""

    text: str
    params: tuple[Any, ...] = field(default_factory=tuple)

    def __str__(self) -> str:
        return self.text


def _placeholders(placeholder: str, count: int) -> str:
    return ", ".join([placeholder] * count)


def build_min_max_query(handle: RelationHandle, key_column: str) -> Query:
    """``SELECT MIN(key), MAX(key)`` over the relation."""
    key = handle.quoted_column(key_column)
    return Query(f"SELECT MIN({key}), MAX({key}) FROM {handle.quoted_name}")


def build_count_query(handle: RelationHandle, column: str | None = None) -> Query:
    """``COUNT(*)``, or ``COUNT(column)`` to skip NULL keys."""
    target = handle.quoted_column(column) if column else "*"
    return Query(f"SELECT COUNT({target}) FROM {handle.quoted_name}")


def build_key_lookup_query(
    handle: RelationHandle,
    key_column: str,
    candidates: Sequence[int],
    placeholder: str,
) -> Query:
    """Fetch the rows whose key equals one of ``candidates``.

    The key is selected first, followed by the relation's own columns, so
    the caller can index rows by key and still project the original shape.
    """
    key = handle.quoted_column(key_column)
    return Query(
        f"SELECT {key}, {handle.select_list} FROM {handle.quoted_name} "
        f"WHERE {key} IN ({_placeholders(placeholder, len(candidates))})",
        tuple(candidates),
    )


def build_positional_lookup_query(
    handle: RelationHandle,
    position_column: str,
    order_clause: str,
    candidates: Sequence[int],
    placeholder: str,
) -> Query:
    """Fetch rows by their ``ROW_NUMBER()`` position in a working view.

    Args:
        handle: Relation being sampled.
        position_column: Quoted name of the synthetic position column.
        order_clause: Window ordering, e.g. ``ORDER BY ctid``, or empty.
        candidates: Positions to look up (1-based).
        placeholder: Driver parameter marker.
    """
    return Query(
        f"SELECT {position_column}, {handle.select_list} FROM ("
        f"SELECT ROW_NUMBER() OVER ({order_clause}) AS {position_column}, "
        f"{handle.select_list} FROM {handle.quoted_name}"
        f") AS positioned "
        f"WHERE {position_column} IN ({_placeholders(placeholder, len(candidates))})",
        tuple(candidates),
    )
