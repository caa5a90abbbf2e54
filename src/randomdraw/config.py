"""Sampler configuration.

Example:
    from randomdraw.config import SamplerConfig

    config = SamplerConfig(gaps=1.1, max_iterations=200, seed=7)
    sampler = RandomSampler(store, config)
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Any

from randomdraw.errors import ConfigurationError
from randomdraw.resilience import RetryConfig

DEFAULT_GAPS = 1.03
DEFAULT_KEYED_LIMIT = 1000
DEFAULT_KEYLESS_LIMIT = 25


@dataclass
class SamplerConfig:
    """Configuration for sampling behavior.

    Attributes:
        gaps: Oversampling factor for key gaps and estimation error.
        max_iterations: Hard bound on candidate batches per call.
        max_stalled_iterations: Consecutive batches adding no new row
            after which the domain is treated as exhausted.
        timeout_seconds: Wall-time bound per call (0 = unbounded).
        max_batch_size: Upper bound on candidates drawn per batch.
        lookup_chunk_size: Bound parameters per ``IN (...)`` lookup.
        use_statistics: Prefer planner statistics over an exact count
            when estimating the key domain.
        seed: Random seed for reproducible draws (None = random).
        retry: Retry policy for store round-trips.
    """

    gaps: float = DEFAULT_GAPS
    max_iterations: int = 1000
    max_stalled_iterations: int = 16
    timeout_seconds: float = 300.0
    max_batch_size: int = 100_000
    lookup_chunk_size: int = 500
    use_statistics: bool = True
    seed: int | None = None
    retry: RetryConfig = field(default_factory=RetryConfig)

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not self.gaps > 0:
            raise ConfigurationError(f"gaps must be positive, got {self.gaps}")
        if self.max_iterations < 1:
            raise ConfigurationError(
                f"max_iterations must be at least 1, got {self.max_iterations}"
            )
        if self.max_stalled_iterations < 1:
            raise ConfigurationError(
                "max_stalled_iterations must be at least 1, "
                f"got {self.max_stalled_iterations}"
            )
        if self.timeout_seconds < 0:
            raise ConfigurationError(
                f"timeout_seconds must be non-negative, got {self.timeout_seconds}"
            )
        if self.max_batch_size < 1:
            raise ConfigurationError(
                f"max_batch_size must be at least 1, got {self.max_batch_size}"
            )
        if self.lookup_chunk_size < 1:
            raise ConfigurationError(
                f"lookup_chunk_size must be at least 1, got {self.lookup_chunk_size}"
            )

    @classmethod
    def fast(cls) -> "SamplerConfig":
        """Give up quickly on sparse or small domains."""
        return cls(
            max_iterations=50,
            max_stalled_iterations=4,
            timeout_seconds=10.0,
            retry=RetryConfig.quick(),
        )

    @classmethod
    def thorough(cls) -> "SamplerConfig":
        """Keep drawing longer and always use exact counts."""
        return cls(
            max_iterations=10_000,
            max_stalled_iterations=64,
            timeout_seconds=3600.0,
            use_statistics=False,
            retry=RetryConfig.persistent(),
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SamplerConfig":
        """Build a config from a plain mapping, e.g. parsed from a file."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(
                f"Unknown sampler config keys: {', '.join(sorted(unknown))}"
            )
        values = dict(data)
        retry = values.get("retry")
        if isinstance(retry, dict):
            values["retry"] = RetryConfig(**retry)
        return cls(**values)

    def with_overrides(self, **overrides: Any) -> "SamplerConfig":
        """Copy with the given non-None fields replaced."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self
