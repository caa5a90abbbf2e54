"""Tests for random candidate generation."""

import random

from randomdraw.candidates import CandidateGenerator
from randomdraw.types import KeyDomain


class TestCandidateGenerator:
    """Tests for CandidateGenerator."""

    def test_batch_size(self):
        """Test the requested number of candidates is produced."""
        domain = KeyDomain(min=1, max=100, estimated_count=100)
        assert len(CandidateGenerator().generate(domain, 250)) == 250

    def test_within_bounds(self):
        """Test every candidate lies in [min, max]."""
        domain = KeyDomain(min=-5, max=5, estimated_count=11)
        batch = CandidateGenerator(seed=1).generate(domain, 1000)
        assert all(-5 <= c <= 5 for c in batch)
        # Both endpoints are reachable
        assert min(batch) == -5
        assert max(batch) == 5

    def test_empty_batch(self):
        """Test non-positive sizes produce nothing."""
        domain = KeyDomain(min=1, max=10, estimated_count=10)
        generator = CandidateGenerator()
        assert generator.generate(domain, 0) == []
        assert generator.generate(domain, -3) == []

    def test_seed_reproducible(self):
        """Test identical seeds produce identical batches."""
        domain = KeyDomain(min=1, max=10**6, estimated_count=10**6)
        first = CandidateGenerator(seed=42).generate(domain, 50)
        second = CandidateGenerator(seed=42).generate(domain, 50)
        assert first == second

    def test_batches_differ(self):
        """Test successive batches are fresh draws."""
        domain = KeyDomain(min=1, max=10**9, estimated_count=10**9)
        generator = CandidateGenerator(seed=3)
        assert generator.generate(domain, 20) != generator.generate(domain, 20)

    def test_custom_rng(self):
        """Test an injected random source is used."""
        domain = KeyDomain(min=1, max=1000, estimated_count=1000)
        expected = random.Random(9)
        batch = CandidateGenerator(rng=random.Random(9)).generate(domain, 5)
        assert batch == [expected.randint(1, 1000) for _ in range(5)]

    def test_roughly_uniform(self):
        """Test draws spread evenly over a small domain."""
        domain = KeyDomain(min=1, max=4, estimated_count=4)
        batch = CandidateGenerator(seed=123).generate(domain, 40_000)
        for value in range(1, 5):
            assert abs(batch.count(value) - 10_000) < 600
