"""Uniform random row sampling over SQL relations.

The sampler draws independent uniform candidates from an integer domain,
resolves them to rows, and keeps the first ``n`` distinct rows in draw
order. Because every draw is uniform over the domain, every hit is uniform
over the existing rows, and the first ``n`` distinct hits form a uniformly
random ``n``-subset of the relation.

Two domains are supported:
- Keyed: ``[MIN(key), MAX(key)]`` of an integer column that identifies rows.
- Keyless: ``[1, COUNT(*)]`` over ``ROW_NUMBER()`` positions, for relations
  without a usable key. Slower, since the database numbers the whole
  relation for every lookup.

Example:
    from randomdraw import RandomSampler, SQLiteStore

    store = SQLiteStore("app.db")
    sampler = RandomSampler(store)

    result = sampler.sample("users", 100, key_column="id")
    if result.is_exhausted:
        print(f"only {len(result)} rows exist")
    df = result.to_polars()
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Sequence

from randomdraw.candidates import CandidateGenerator
from randomdraw.config import DEFAULT_KEYED_LIMIT, DEFAULT_KEYLESS_LIMIT, SamplerConfig
from randomdraw.datasources.base import BaseSQLStore
from randomdraw.errors import InvalidParameterError
from randomdraw.estimator import KeyRangeEstimator
from randomdraw.introspect import describe
from randomdraw.resilience import RetryPolicy
from randomdraw.resolver import PositionalRowResolver, RowResolver
from randomdraw.types import KeyDomain, RelationHandle, SampleResult, SampleStatus

logger = logging.getLogger(__name__)

Resolve = Callable[[Sequence[int]], dict[int, tuple]]


def _validate_count(n: object) -> int:
    if isinstance(n, bool) or not isinstance(n, int):
        raise InvalidParameterError("n", n, "a positive integer")
    if n <= 0:
        raise InvalidParameterError("n", n, "a positive integer")
    return n


def _validate_gaps(gaps: object) -> float:
    if isinstance(gaps, bool) or not isinstance(gaps, (int, float)):
        raise InvalidParameterError("gaps", gaps, "a positive number")
    if not gaps > 0:
        raise InvalidParameterError("gaps", gaps, "a positive number")
    return float(gaps)


class RandomSampler:
    """Draws uniformly random subsets of rows from a store's relations.

    The sampler keeps no state between calls; each ``sample`` call
    introspects the relation, estimates its domain and accumulates rows
    from scratch.
    """

    def __init__(self, store: BaseSQLStore, config: SamplerConfig | None = None) -> None:
        self.store = store
        self.config = config or SamplerConfig()

    def sample(
        self,
        relation: str,
        n: int | None = None,
        key_column: str | None = None,
        gaps: float | None = None,
        schema: str | None = None,
    ) -> SampleResult:
        """Draw up to ``n`` distinct rows uniformly at random.

        Args:
            relation: Table or view name, optionally ``schema.name``.
            n: Number of rows wanted. Defaults to 1000 with a key column
                and 25 without one.
            key_column: Integer column identifying rows. When omitted the
                keyless positional path is used.
            gaps: Oversampling factor; defaults to ``config.gaps``.
            schema: Explicit schema for ``relation``.

        Returns:
            SampleResult with status COMPLETE, EXHAUSTED (fewer rows exist
            than requested) or BUDGET_EXCEEDED (iteration/time bound hit).

        Raises:
            InvalidParameterError: Non-positive ``n`` or ``gaps``.
            UnknownRelationError: The relation does not exist.
            InvalidKeyColumnError: The key column is absent or not integer.
            StoreUnavailableError: The store kept failing after retries.
        """
        if n is None:
            n = DEFAULT_KEYED_LIMIT if key_column else DEFAULT_KEYLESS_LIMIT
        n = _validate_count(n)
        gaps = _validate_gaps(self.config.gaps if gaps is None else gaps)

        started = time.monotonic()
        policy = RetryPolicy(self.config.retry)
        handle = policy.execute_with_retry(describe, self.store, relation, schema)
        estimator = KeyRangeEstimator(
            self.store,
            retry_policy=policy,
            use_statistics=self.config.use_statistics,
        )

        resolve: Resolve
        if key_column is not None:
            domain = estimator.estimate(handle, key_column, gaps)
            key_column = handle.get_column(key_column).name
            keyed = RowResolver(self.store, policy, self.config.lookup_chunk_size)

            def resolve(candidates: Sequence[int]) -> dict[int, tuple]:
                return keyed.resolve(handle, key_column, candidates)
        else:
            domain = estimator.positional(handle, gaps)
            positional = PositionalRowResolver(self.store, policy, self.config.lookup_chunk_size)

            def resolve(candidates: Sequence[int]) -> dict[int, tuple]:
                return positional.resolve(handle, candidates)

        if domain is None:
            return SampleResult(
                columns=handle.column_names,
                rows=[],
                requested=n,
                status=SampleStatus.EXHAUSTED,
                elapsed_seconds=time.monotonic() - started,
                key_column=key_column,
            )

        return self._accumulate(handle, domain, n, resolve, key_column, started)

    def _accumulate(
        self,
        handle: RelationHandle,
        domain: KeyDomain,
        n: int,
        resolve: Resolve,
        key_column: str | None,
        started: float,
    ) -> SampleResult:
        """Collect distinct rows batch by batch until done or bounded."""
        cfg = self.config
        generator = CandidateGenerator(seed=cfg.seed)

        have: dict[int, tuple] = {}
        probed: set[int] = set()
        # Probed values are only remembered while the span is enumerable
        track_probed = domain.span <= cfg.max_batch_size
        iterations = drawn = misses = duplicates = stalled = 0

        while True:
            elapsed = time.monotonic() - started
            if len(have) >= n:
                status = SampleStatus.COMPLETE
                break
            if track_probed and len(probed) >= domain.span:
                # Every value in the domain has been looked up
                status = SampleStatus.EXHAUSTED
                break
            if domain.count_is_exact and len(have) >= domain.estimated_count:
                status = SampleStatus.EXHAUSTED
                break
            if stalled >= cfg.max_stalled_iterations:
                # An exact count below the target means rows remain unreached
                if domain.count_is_exact:
                    status = SampleStatus.BUDGET_EXCEEDED
                else:
                    status = SampleStatus.EXHAUSTED
                break
            if iterations >= cfg.max_iterations:
                status = SampleStatus.BUDGET_EXCEEDED
                break
            if cfg.timeout_seconds and elapsed >= cfg.timeout_seconds:
                status = SampleStatus.BUDGET_EXCEEDED
                break

            batch = generator.generate(domain, domain.batch_size(n - len(have), cfg.max_batch_size))
            iterations += 1
            drawn += len(batch)

            fresh = [c for c in dict.fromkeys(batch) if c not in probed]
            found = resolve(fresh) if fresh else {}
            if track_probed:
                probed.update(fresh)

            added = 0
            for candidate in batch:
                if candidate in have:
                    duplicates += 1
                elif candidate in found:
                    have[candidate] = found[candidate]
                    added += 1
                else:
                    misses += 1

            stalled = 0 if added else stalled + 1
            logger.debug(
                f"Iteration {iterations} on {handle.qualified_name}: drew {len(batch)}, "
                f"added {added}, have {len(have)}/{n}"
            )

        # dicts keep insertion order, so this truncates in draw order
        rows = list(have.values())[:n]
        result = SampleResult(
            columns=handle.column_names,
            rows=rows,
            requested=n,
            status=status,
            iterations=iterations,
            candidates_drawn=drawn,
            misses=misses,
            duplicates=duplicates,
            elapsed_seconds=time.monotonic() - started,
            domain=domain,
            key_column=key_column,
        )

        if result.is_complete:
            logger.info(
                f"Sampled {len(rows)} rows from {handle.qualified_name} "
                f"in {iterations} iteration(s)"
            )
        else:
            logger.warning(
                f"Sampled {len(rows)} of {n} rows from {handle.qualified_name}: "
                f"{status.value} after {iterations} iteration(s)"
            )
        return result
