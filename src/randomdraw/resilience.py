"""Bounded retry with exponential backoff for store round-trips.

Every query issued during a sampling call goes through a ``RetryPolicy``.
Only transient store failures (``StoreUnavailableError``) are retried;
schema and parameter errors propagate on the first attempt.

Example:
    policy = RetryPolicy(RetryConfig(max_attempts=3))

    @policy.retry
    def fetch():
        return store.execute_scalar("SELECT 1")
"""

from __future__ import annotations

import logging
import random
import threading
import time
from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable, TypeVar

from randomdraw.errors import ConfigurationError, StoreUnavailableError

logger = logging.getLogger("randomdraw.resilience")

T = TypeVar("T")


@dataclass
class RetryConfig:
    """Configuration for retry logic.

    Attributes:
        max_attempts: Maximum attempts (1 = no retry)
        base_delay: Base delay in seconds
        max_delay: Maximum delay cap
        exponential_base: Multiplier for exponential backoff
        jitter: Add random jitter to delays
        retryable_exceptions: Exceptions that trigger retry
    """

    max_attempts: int = 3
    base_delay: float = 0.1
    max_delay: float = 10.0
    exponential_base: float = 2.0
    jitter: bool = True
    retryable_exceptions: tuple[type[Exception], ...] = (StoreUnavailableError,)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ConfigurationError(
                f"max_attempts must be at least 1, got {self.max_attempts}"
            )
        if self.base_delay < 0 or self.max_delay < 0:
            raise ConfigurationError("retry delays must be non-negative")

    def calculate_delay(self, attempt: int) -> float:
        """Calculate delay for given attempt number."""
        delay = self.base_delay * (self.exponential_base ** attempt)
        delay = min(delay, self.max_delay)

        if self.jitter:
            delay *= (0.5 + random.random())

        return delay

    @classmethod
    def no_retry(cls) -> "RetryConfig":
        """No retry configuration."""
        return cls(max_attempts=1)

    @classmethod
    def quick(cls) -> "RetryConfig":
        """Quick retry for transient failures."""
        return cls(
            max_attempts=3,
            base_delay=0.05,
            max_delay=1.0,
        )

    @classmethod
    def persistent(cls) -> "RetryConfig":
        """Persistent retry for busy or flaky stores."""
        return cls(
            max_attempts=5,
            base_delay=0.5,
            max_delay=30.0,
        )


class RetryPolicy:
    """Retry policy with exponential backoff."""

    def __init__(
        self,
        config: RetryConfig | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config or RetryConfig()
        self._sleep = sleep
        self._total_attempts = 0
        self._total_retries = 0
        self._lock = threading.Lock()

    def should_retry(self, exc: Exception, attempt: int) -> bool:
        """Determine if operation should be retried."""
        if attempt >= self.config.max_attempts:
            return False

        return isinstance(exc, self.config.retryable_exceptions)

    def execute_with_retry(
        self,
        func: Callable[..., T],
        *args: Any,
        **kwargs: Any,
    ) -> T:
        """Execute function with retry logic.

        Args:
            func: Function to execute
            *args: Positional arguments
            **kwargs: Keyword arguments

        Returns:
            Function result

        Raises:
            The last exception if all attempts fail or it is not retryable.
        """
        name = getattr(func, "__name__", repr(func))

        for attempt in range(self.config.max_attempts):
            with self._lock:
                self._total_attempts += 1
                if attempt > 0:
                    self._total_retries += 1

            try:
                return func(*args, **kwargs)

            except Exception as e:
                if not self.should_retry(e, attempt + 1):
                    if isinstance(e, self.config.retryable_exceptions):
                        logger.error(
                            f"Giving up on {name} after {attempt + 1} attempt(s): {e}"
                        )
                    raise

                delay = self.config.calculate_delay(attempt)
                logger.warning(
                    f"Retry {attempt + 1}/{self.config.max_attempts} for "
                    f"{name} after {delay:.2f}s: {e}"
                )
                self._sleep(delay)

        raise RuntimeError("Unexpected state in retry logic")

    def retry(self, func: Callable[..., T]) -> Callable[..., T]:
        """Decorator to add retry logic to a function."""
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            return self.execute_with_retry(func, *args, **kwargs)

        return wrapper

    def get_stats(self) -> dict[str, Any]:
        """Get retry statistics."""
        with self._lock:
            return {
                "total_attempts": self._total_attempts,
                "total_retries": self._total_retries,
                "retry_rate": (
                    self._total_retries / self._total_attempts
                    if self._total_attempts > 0 else 0.0
                ),
            }
