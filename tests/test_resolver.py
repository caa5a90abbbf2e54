"""Tests for candidate-to-row resolution."""

from unittest.mock import patch

import pytest

from randomdraw.datasources import SQLiteStore
from randomdraw.introspect import describe
from randomdraw.resolver import POSITION_COLUMN_PREFIX, PositionalRowResolver, RowResolver


# =============================================================================
# RowResolver Tests
# =============================================================================


class TestRowResolver:
    """Tests for keyed resolution."""

    def test_hits_and_misses(self, gapped_store):
        """Test only existing keys come back."""
        handle = describe(gapped_store, "gapped")
        found = RowResolver(gapped_store).resolve(handle, "id", [1, 2, 3, 5, 11, 12])
        assert found == {1: (1, "one"), 5: (5, "five"), 12: (12, "twelve")}

    def test_rows_match_relation_shape(self, users_store):
        """Test rows are projected to the relation's columns in order."""
        handle = describe(users_store, "users")
        found = RowResolver(users_store).resolve(handle, "id", [2])
        assert found[2] == (2, "Bob", 30, 60000.0)
        assert len(found[2]) == len(handle.columns)

    def test_duplicate_candidates(self, users_store):
        """Test repeated candidates resolve once."""
        handle = describe(users_store, "users")
        found = RowResolver(users_store).resolve(handle, "id", [3, 3, 3])
        assert list(found) == [3]

    def test_empty_candidates(self, users_store):
        """Test nothing is queried for an empty batch."""
        handle = describe(users_store, "users")
        assert RowResolver(users_store).resolve(handle, "id", []) == {}

    def test_chunking(self, users_store):
        """Test large batches are split into several lookups."""
        handle = describe(users_store, "users")
        resolver = RowResolver(users_store, chunk_size=2)
        with patch.object(users_store, "fetch_rows", wraps=users_store.fetch_rows) as spy:
            found = resolver.resolve(handle, "id", [1, 2, 3, 4, 5])
        assert sorted(found) == [1, 2, 3, 4, 5]
        assert spy.call_count == 3
        assert all(len(call.args[0].params) <= 2 for call in spy.call_args_list)

    def test_all_misses(self, gapped_store):
        """Test a batch with no matches."""
        handle = describe(gapped_store, "gapped")
        assert RowResolver(gapped_store).resolve(handle, "id", [2, 3, 4]) == {}


# =============================================================================
# PositionalRowResolver Tests
# =============================================================================


class TestPositionalRowResolver:
    """Tests for positional resolution."""

    def test_positions(self, words_store):
        """Test positions 1..count each map to a row."""
        handle = describe(words_store, "words")
        found = PositionalRowResolver(words_store).resolve(handle, list(range(1, 21)))
        assert len(found) == 20
        assert len(set(found.values())) == 20

    def test_out_of_range(self, words_store):
        """Test positions outside the relation are dropped."""
        handle = describe(words_store, "words")
        found = PositionalRowResolver(words_store).resolve(handle, [0, 21, 500])
        assert found == {}

    def test_no_synthetic_column(self, words_store):
        """Test rows contain only the relation's own columns."""
        handle = describe(words_store, "words")
        found = PositionalRowResolver(words_store).resolve(handle, [1, 7])
        for row in found.values():
            assert len(row) == 2
            assert row[0].startswith("word")

    def test_stable_positions(self, words_store):
        """Test the same position maps to the same row across queries."""
        handle = describe(words_store, "words")
        resolver = PositionalRowResolver(words_store)
        first = resolver.resolve(handle, [3, 9, 14])
        second = resolver.resolve(handle, [14, 9, 3])
        assert first == second

    def test_position_column_avoids_collisions(self, make_db):
        """Test the synthetic name differs from existing columns."""
        taken = POSITION_COLUMN_PREFIX + "deadbeef"
        store = SQLiteStore(make_db(
            f'CREATE TABLE t ("{taken}" INTEGER, v TEXT); INSERT INTO t VALUES (1, \'a\');'
        ))
        handle = describe(store, "t")

        class FakeUUID:
            def __init__(self, hex_value):
                self.hex = hex_value

        fakes = iter([FakeUUID("deadbeef" + "0" * 24), FakeUUID("cafebabe" + "0" * 24)])
        with patch("randomdraw.resolver.uuid.uuid4", side_effect=lambda: next(fakes)):
            resolver = PositionalRowResolver(store)
            assert resolver.position_column(handle) == POSITION_COLUMN_PREFIX + "cafebabe"

        assert resolver.resolve(handle, [1]) == {1: (1, "a")}
        store.close()

    @pytest.mark.parametrize("chunk_size", [1, 3, 500])
    def test_chunk_sizes(self, words_store, chunk_size):
        """Test chunking does not change results."""
        handle = describe(words_store, "words")
        found = PositionalRowResolver(words_store, chunk_size=chunk_size).resolve(
            handle, [2, 4, 6, 8, 10]
        )
        assert sorted(found) == [2, 4, 6, 8, 10]
