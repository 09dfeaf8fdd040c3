"""Substack Core -- primitives shared by the orchestration framework.

Architecture::

    Layer 1 -- Type System & Errors
        errors.py          Structured error hierarchy (SubstackError, UnitNotFoundError)
        result.py          Ok / Err envelope for per-unit fan-out capture
        identity.py        StackIdentity ("<stack>.<substack>") parsing
        values.py          Plain / Secret tagged output values

    Layer 2 -- Ambient
        logging.py         structlog configuration, context binding, log_step
        settings.py        SubstackSettings (pydantic-settings) + get_settings()
"""

from substack.core.errors import (
    ConfigError,
    ErrorCategory,
    ErrorContext,
    InvalidOutputsError,
    InvalidStackIdentityError,
    InvalidUnitError,
    OrchestrationError,
    RemoteFetchError,
    RemoteFetchTimeoutError,
    RootAggregationError,
    StoreError,
    SubstackError,
    UnitNotFoundError,
    UnknownOutputKeyError,
)
from substack.core.identity import StackIdentity
from substack.core.enums import RootFailurePolicy, RunMode, StoreBackend
from substack.core.result import Err, Ok, Result, capture
from substack.core.values import (
    OutputDetails,
    OutputValue,
    Plain,
    Secret,
    contains_secret,
    mask,
    reveal,
    secret,
    unwrap,
)

__all__ = [
    # errors
    "ErrorCategory",
    "ErrorContext",
    "SubstackError",
    "ConfigError",
    "InvalidStackIdentityError",
    "OrchestrationError",
    "UnitNotFoundError",
    "InvalidUnitError",
    "InvalidOutputsError",
    "UnknownOutputKeyError",
    "RootAggregationError",
    "StoreError",
    "RemoteFetchError",
    "RemoteFetchTimeoutError",
    # identity
    "StackIdentity",
    # result
    "Ok",
    "Err",
    "Result",
    "capture",
    # enums
    "RunMode",
    "RootFailurePolicy",
    "StoreBackend",
    # values
    "Plain",
    "Secret",
    "OutputValue",
    "OutputDetails",
    "secret",
    "unwrap",
    "reveal",
    "contains_secret",
    "mask",
]
