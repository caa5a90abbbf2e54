"""Schema introspection.

Resolves a relation identifier against the live catalog and returns a
``RelationHandle`` whose names are already rendered through the store's
identifier quoting.
"""

from __future__ import annotations

import logging

from randomdraw.datasources.base import BaseSQLStore
from randomdraw.errors import UnknownRelationError
from randomdraw.types import RelationHandle

logger = logging.getLogger(__name__)


def _split_relation(relation: str) -> tuple[str | None, str]:
    schema, _, name = relation.partition(".")
    return schema, name


def describe(
    store: BaseSQLStore,
    relation: str,
    schema: str | None = None,
) -> RelationHandle:
    """Resolve ``relation`` to a handle with its ordered column list.

    Args:
        store: Store to query.
        relation: Relation name, optionally written as ``schema.name``.
        schema: Explicit schema; overrides any prefix in ``relation``.

    Raises:
        UnknownRelationError: If nothing by that name exists at call time.
    """
    candidates: list[tuple[str | None, str]] = [(schema or store.default_schema, relation)]
    if schema is None and relation.count(".") == 1:
        candidates.append(_split_relation(relation))

    for candidate_schema, name in candidates:
        if not name:
            continue
        columns = store.fetch_columns(name, candidate_schema)
        if not columns:
            continue

        handle = RelationHandle(
            name=name,
            schema=candidate_schema,
            columns=tuple(columns),
            quoted_name=store.quote_relation(name, candidate_schema),
            quoted_columns=tuple(store.quote_identifier(c.name) for c in columns),
            kind=store.relation_kind(name, candidate_schema),
        )
        logger.debug(
            f"Resolved {handle.qualified_name} ({handle.kind or 'unknown kind'}) "
            f"with {len(columns)} columns"
        )
        return handle

    raise UnknownRelationError(relation, schema)


def columns(store: BaseSQLStore, relation: str, schema: str | None = None) -> list[str]:
    """Column names of ``relation`` in declaration order."""
    return describe(store, relation, schema).column_names
