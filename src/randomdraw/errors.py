"""Structured error handling for the sampling engine.

This module provides the exception hierarchy raised by randomdraw:
- Schema errors (unknown relation, unusable key column)
- Parameter errors (non-positive count or oversampling factor)
- Store errors (transient I/O failure, failed query)

Exhaustion of the sampling domain is not an error. It is reported as
``SampleStatus.EXHAUSTED`` on the result; ``SampleShortfallError`` exists
only for callers that opt into strict results.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Categories of sampling errors."""

    SCHEMA = "schema"           # Relation or column could not be resolved
    PARAMETER = "parameter"     # Invalid call arguments
    STORE = "store"             # Underlying database failure
    CONFIGURATION = "configuration"
    SHORTFALL = "shortfall"     # Strict mode only


class SamplingError(Exception):
    """Base exception for all randomdraw errors."""

    category: ErrorCategory = ErrorCategory.STORE

    def __init__(
        self,
        message: str,
        *,
        cause: Exception | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.context = context or {}
        self.timestamp = datetime.now()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "error": type(self).__name__,
            "message": self.message,
            "category": self.category.value,
            "cause": str(self.cause) if self.cause else None,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message} | cause={self.cause}"
        return self.message


class UnknownRelationError(SamplingError):
    """Raised when a relation identifier does not resolve to a table or view."""

    category = ErrorCategory.SCHEMA

    def __init__(self, relation: str, schema: str | None = None) -> None:
        self.relation = relation
        self.schema = schema
        qualified = f"{schema}.{relation}" if schema else relation
        super().__init__(
            f"Relation not found: {qualified}",
            context={"relation": relation, "schema": schema},
        )


class InvalidKeyColumnError(SamplingError):
    """Raised when the key column is missing or not integer-valued."""

    category = ErrorCategory.SCHEMA

    def __init__(self, relation: str, column: str, reason: str) -> None:
        self.relation = relation
        self.column = column
        self.reason = reason
        super().__init__(
            f"Invalid key column {column!r} for {relation}: {reason}",
            context={"relation": relation, "column": column},
        )


class InvalidParameterError(SamplingError, ValueError):
    """Raised for non-positive sample counts or oversampling factors."""

    category = ErrorCategory.PARAMETER

    def __init__(self, name: str, value: Any, requirement: str) -> None:
        self.name = name
        self.value = value
        super().__init__(
            f"{name} must be {requirement}, got {value!r}",
            context={"parameter": name, "value": value},
        )


class ConfigurationError(SamplingError, ValueError):
    """Raised when a configuration object is invalid."""

    category = ErrorCategory.CONFIGURATION


class StoreUnavailableError(SamplingError):
    """Raised when the store fails with a transient I/O error.

    The sampler retries these a bounded number of times before giving up,
    in which case this error propagates and no rows are returned.
    """

    category = ErrorCategory.STORE

    def __init__(
        self,
        store_type: str,
        message: str,
        *,
        cause: Exception | None = None,
    ) -> None:
        self.store_type = store_type
        super().__init__(
            f"{store_type} store unavailable: {message}",
            cause=cause,
            context={"store_type": store_type},
        )


class StoreQueryError(SamplingError):
    """Raised when a query fails for a non-transient reason."""

    category = ErrorCategory.STORE

    def __init__(
        self,
        store_type: str,
        message: str,
        *,
        query: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.store_type = store_type
        self.query = query
        super().__init__(
            f"{store_type} query failed: {message}",
            cause=cause,
            context={"store_type": store_type, "query": query},
        )


class SampleShortfallError(SamplingError):
    """Raised by ``SampleResult.raise_for_status`` on a short result."""

    category = ErrorCategory.SHORTFALL

    def __init__(self, requested: int, collected: int, status: str) -> None:
        self.requested = requested
        self.collected = collected
        self.status = status
        super().__init__(
            f"Collected {collected} of {requested} requested rows ({status})",
            context={"requested": requested, "collected": collected, "status": status},
        )
