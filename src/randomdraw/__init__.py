"""randomdraw - uniform random row samples from arbitrary SQL relations."""

from randomdraw.api import get_column_names, idx_random_select, random_select
from randomdraw.candidates import CandidateGenerator
from randomdraw.config import SamplerConfig
from randomdraw.datasources import (
    BaseSQLStore,
    PostgreSQLStore,
    SQLiteStore,
    get_store,
)
from randomdraw.errors import (
    ConfigurationError,
    InvalidKeyColumnError,
    InvalidParameterError,
    SampleShortfallError,
    SamplingError,
    StoreQueryError,
    StoreUnavailableError,
    UnknownRelationError,
)
from randomdraw.estimator import KeyRangeEstimator
from randomdraw.introspect import columns, describe
from randomdraw.resilience import RetryConfig, RetryPolicy
from randomdraw.resolver import PositionalRowResolver, RowResolver
from randomdraw.sampler import RandomSampler
from randomdraw.types import (
    ColumnInfo,
    ColumnType,
    KeyDomain,
    RelationHandle,
    SampleResult,
    SampleStatus,
)

__version__ = "0.1.0"

__all__ = [
    # API
    "random_select",
    "idx_random_select",
    "get_column_names",
    # Engine
    "RandomSampler",
    "SamplerConfig",
    "CandidateGenerator",
    "KeyRangeEstimator",
    "RowResolver",
    "PositionalRowResolver",
    "columns",
    "describe",
    "RetryConfig",
    "RetryPolicy",
    # Stores
    "BaseSQLStore",
    "SQLiteStore",
    "PostgreSQLStore",
    "get_store",
    # Types
    "ColumnInfo",
    "ColumnType",
    "KeyDomain",
    "RelationHandle",
    "SampleResult",
    "SampleStatus",
    # Errors
    "SamplingError",
    "UnknownRelationError",
    "InvalidKeyColumnError",
    "InvalidParameterError",
    "ConfigurationError",
    "StoreUnavailableError",
    "StoreQueryError",
    "SampleShortfallError",
]
