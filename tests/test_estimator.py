"""Tests for key-range estimation and the KeyDomain model."""

import math

import pytest

from randomdraw.datasources import SQLiteStore
from randomdraw.errors import InvalidKeyColumnError
from randomdraw.estimator import KeyRangeEstimator, estimate
from randomdraw.introspect import describe
from randomdraw.types import CountSource, KeyDomain


# =============================================================================
# KeyRangeEstimator Tests
# =============================================================================


class TestKeyRangeEstimator:
    """Tests for KeyRangeEstimator."""

    def test_contiguous_keys(self, users_store):
        """Test min/max/count over contiguous keys."""
        domain = estimate(users_store, describe(users_store, "users"), "id")
        assert (domain.min, domain.max) == (1, 5)
        assert domain.estimated_count == 5
        assert domain.count_source == CountSource.EXACT
        assert domain.span == 5
        assert domain.gaps == pytest.approx(1.03)

    def test_gapped_keys(self, gapped_store):
        """Test a sparse key range."""
        domain = estimate(gapped_store, describe(gapped_store, "gapped"), "id", gaps=1.5)
        assert (domain.min, domain.max) == (1, 12)
        assert domain.estimated_count == 4
        assert domain.span == 12
        assert domain.density == pytest.approx(4 / 12)
        assert domain.gaps == 1.5

    def test_statistics_preferred(self, users_store):
        """Test planner statistics are used when present."""
        users_store.analyze()
        estimator = KeyRangeEstimator(users_store, use_statistics=True)
        domain = estimator.estimate(describe(users_store, "users"), "id")
        assert domain.count_source == CountSource.STATISTICS
        assert domain.estimated_count == 5
        assert not domain.count_is_exact

    def test_statistics_disabled(self, users_store):
        """Test exact counting when statistics are disabled."""
        users_store.analyze()
        estimator = KeyRangeEstimator(users_store, use_statistics=False)
        domain = estimator.estimate(describe(users_store, "users"), "id")
        assert domain.count_source == CountSource.EXACT

    def test_null_keys_not_counted(self, make_db):
        """Test NULL keys are excluded from the exact count."""
        store = SQLiteStore(make_db(
            """
            CREATE TABLE t (k INTEGER, v TEXT);
            INSERT INTO t VALUES (10, 'a'), (NULL, 'b'), (20, 'c');
            """
        ))
        domain = estimate(store, describe(store, "t"), "k")
        assert (domain.min, domain.max, domain.estimated_count) == (10, 20, 2)
        store.close()

    def test_empty_relation(self, make_db):
        """Test an empty relation has no domain."""
        store = SQLiteStore(make_db("CREATE TABLE empty (id INTEGER);"))
        assert estimate(store, describe(store, "empty"), "id") is None
        store.close()

    def test_missing_column(self, users_store):
        """Test a missing key column."""
        with pytest.raises(InvalidKeyColumnError, match="column not found"):
            estimate(users_store, describe(users_store, "users"), "nope")

    def test_non_integer_declared(self, users_store):
        """Test a column declared as text is rejected."""
        with pytest.raises(InvalidKeyColumnError, match="not an integer type"):
            estimate(users_store, describe(users_store, "users"), "name")

    def test_float_declared(self, users_store):
        """Test a REAL column is rejected."""
        with pytest.raises(InvalidKeyColumnError):
            estimate(users_store, describe(users_store, "users"), "salary")

    def test_untyped_integer_column(self, make_db):
        """Test an untyped view column holding integers is accepted."""
        store = SQLiteStore(make_db(
            """
            CREATE TABLE base (id INTEGER, v TEXT);
            INSERT INTO base VALUES (1, 'a'), (3, 'b');
            CREATE VIEW shifted AS SELECT id * 10 AS k, v FROM base;
            """
        ))
        handle = describe(store, "shifted")
        assert handle.get_column("k").data_type == ""
        domain = estimate(store, handle, "k")
        assert (domain.min, domain.max) == (10, 30)
        store.close()

    def test_untyped_text_column(self, make_db):
        """Test an untyped column holding text is rejected at runtime."""
        store = SQLiteStore(make_db(
            """
            CREATE TABLE base (v TEXT);
            INSERT INTO base VALUES ('x'), ('y');
            CREATE VIEW loose AS SELECT v || '' AS k FROM base;
            """
        ))
        with pytest.raises(InvalidKeyColumnError, match="not integers"):
            estimate(store, describe(store, "loose"), "k")
        store.close()

    def test_positional_domain(self, words_store):
        """Test the keyless domain is [1, COUNT(*)]."""
        estimator = KeyRangeEstimator(words_store)
        domain = estimator.positional(describe(words_store, "words"))
        assert (domain.min, domain.max, domain.estimated_count) == (1, 20, 20)
        assert domain.count_source == CountSource.POSITIONAL
        assert domain.count_is_exact

    def test_positional_empty(self, make_db):
        """Test the keyless domain of an empty relation."""
        store = SQLiteStore(make_db("CREATE TABLE nothing (t TEXT);"))
        assert KeyRangeEstimator(store).positional(describe(store, "nothing")) is None
        store.close()


# =============================================================================
# KeyDomain Tests
# =============================================================================


class TestKeyDomain:
    """Tests for KeyDomain sizing rules."""

    def test_min_greater_than_max(self):
        """Test the min <= max invariant."""
        with pytest.raises(ValueError):
            KeyDomain(min=5, max=1, estimated_count=1)

    def test_single_value(self):
        """Test a one-value domain."""
        domain = KeyDomain(min=7, max=7, estimated_count=1)
        assert domain.span == 1
        assert domain.batch_size(1) == 1

    def test_dense_batch(self):
        """Test batch size on a gap-free domain is deficit * gaps."""
        domain = KeyDomain(min=1, max=1000, estimated_count=1000, gaps=1.03)
        assert domain.batch_size(100) == math.ceil(100 * 1.03)

    def test_sparse_batch(self):
        """Test sparse domains draw proportionally more candidates."""
        domain = KeyDomain(min=1, max=12, estimated_count=4, gaps=1.03)
        assert domain.batch_size(3) == math.ceil(3 * 1.03 * 3)

    def test_batch_capped_by_span(self):
        """Test the batch never exceeds span * gaps."""
        domain = KeyDomain(min=1, max=10, estimated_count=1, gaps=1.0)
        assert domain.batch_size(5) == 10

    def test_batch_capped_by_max(self):
        """Test the configured upper bound wins."""
        domain = KeyDomain(min=1, max=10**9, estimated_count=10, gaps=1.03)
        assert domain.batch_size(5, max_batch_size=1000) == 1000

    def test_batch_at_least_deficit(self):
        """Test a batch always covers the deficit."""
        domain = KeyDomain(min=1, max=100, estimated_count=100, gaps=0.5)
        assert domain.batch_size(40) == 40

    def test_zero_deficit(self):
        """Test nothing is drawn without a deficit."""
        domain = KeyDomain(min=1, max=100, estimated_count=100)
        assert domain.batch_size(0) == 0

    def test_stale_statistics_clamped(self):
        """Test a count above the span does not shrink batches below deficit."""
        domain = KeyDomain(
            min=1, max=10, estimated_count=50, count_source=CountSource.STATISTICS
        )
        assert domain.density == 1.0
        assert domain.batch_size(4) >= 4

    def test_to_dict(self):
        """Test serialization."""
        data = KeyDomain(min=1, max=4, estimated_count=4).to_dict()
        assert data["span"] == 4
        assert data["count_source"] == "exact"
