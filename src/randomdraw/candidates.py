"""Random candidate generation."""

from __future__ import annotations

import random

from randomdraw.types import KeyDomain


class CandidateGenerator:
    """Draws batches of independent uniform integers from a key domain.

    Each draw is independent of every other draw, within and across
    batches. The only state carried between calls is the random source,
    which can be seeded for reproducible runs.

    Example:
        >>> generator = CandidateGenerator(seed=42)
        >>> batch = generator.generate(domain, 100)
    """

    def __init__(self, seed: int | None = None, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random(seed)

    def generate(self, domain: KeyDomain, batch_size: int) -> list[int]:
        """Return ``batch_size`` uniform draws from ``[domain.min, domain.max]``."""
        if batch_size <= 0:
            return []
        low, high = domain.min, domain.max
        randint = self._rng.randint
        return [randint(low, high) for _ in range(batch_size)]
