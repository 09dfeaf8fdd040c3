"""
Structured error types for the substack framework.

Every error raised by the orchestration core extends SubstackError so callers
get a category, an explicit retry flag, structured context (stack, substack,
unit, output key) and a chained cause for root cause analysis.

Manifesto:
    - **Typed Error Hierarchy:** Different error types for different failure points
    - **Explicit Retry Semantics:** Each error knows if it's retryable
    - **Rich Context:** Errors carry the stack identity and unit they concern
    - **Error Chaining:** Store failures keep the original exception as cause

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                       SubstackError                             │
        │  (category, retryable, context, cause)                          │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                 │
        │  ConfigError          OrchestrationError        StoreError      │
        │  (CONFIG)             (ORCHESTRATION)           (STORE)         │
        │       │                     │                       │           │
        │  InvalidStack-        UnitNotFoundError        RemoteFetchError │
        │  IdentityError        InvalidUnitError              │           │
        │                       InvalidOutputsError      RemoteFetch-     │
        │                       UnknownOutputKeyError    TimeoutError     │
        │                       RootAggregationError                      │
        └─────────────────────────────────────────────────────────────────┘

    An absent output key is not an error: accessors return ``None`` for a
    key that was never published.

Examples:
    >>> error = UnitNotFoundError("build", available=["provision"])
    >>> error.unit_name
    'build'
    >>> error.to_dict()["category"]
    'ORCHESTRATION'

    >>> try:
    ...     raise ConnectionError("backend unreachable")
    ... except ConnectionError as e:
    ...     raise RemoteFetchError("fetch failed", cause=e)
    Traceback (most recent call last):
    ...
    RemoteFetchError: fetch failed

Tags:
    error-handling, exception-hierarchy, error-context, substack

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    CONFIG = "CONFIG"                # Settings, stack identity
    ORCHESTRATION = "ORCHESTRATION"  # Registry and dispatch
    STORE = "STORE"                  # Remote output store
    VALIDATION = "VALIDATION"        # Unit outputs, output keys
    INTERNAL = "INTERNAL"            # Bugs, unexpected state


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Only fields that are set end up in ``to_dict()``; anything that has no
    dedicated field goes into ``metadata``.

    Attributes:
        stack: Parent stack name (left side of the stack identity)
        substack: Selected substack of the current process, if any
        unit: Unit the error concerns (may differ from ``substack``)
        key: Output key being read
        identity: Full stack identity of a remote reference
        metadata: Additional key-value pairs
    """

    stack: str | None = None
    substack: str | None = None
    unit: str | None = None
    key: str | None = None
    identity: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["stack", "substack", "unit", "key", "identity"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class SubstackError(Exception):
    """
    Base exception for all substack errors.

    Subclasses set ``default_category`` and ``default_retryable``; callers can
    override both per instance. ``cause`` is chained as ``__cause__`` so
    tracebacks show the underlying failure.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> SubstackError:
        """
        Add context to the error (fluent API).

        Example:
            raise RemoteFetchError("Failed").with_context(
                identity="dev.build",
                key="imageDigest",
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIG ERRORS
# =============================================================================


class ConfigError(SubstackError):
    """Missing or invalid configuration."""

    default_category = ErrorCategory.CONFIG


class InvalidStackIdentityError(ConfigError):
    """Stack identity string could not be parsed."""

    def __init__(self, text: str, reason: str):
        self.text = text
        super().__init__(f"Invalid stack identity {text!r}: {reason}")


# =============================================================================
# ORCHESTRATION ERRORS
# =============================================================================


class OrchestrationError(SubstackError):
    """Registry or dispatch error."""

    default_category = ErrorCategory.ORCHESTRATION


class UnitNotFoundError(OrchestrationError):
    """No compute registered under the selected substack name."""

    def __init__(self, name: str, available: Iterable[str] = ()):
        self.unit_name = name
        self.available = list(available)
        listing = ", ".join(self.available) or "none"
        super().__init__(
            f"Substack not found: {name} (registered: {listing})",
            context=ErrorContext(unit=name),
        )


class InvalidUnitError(OrchestrationError):
    """Registration was given an unusable name or compute."""

    default_category = ErrorCategory.VALIDATION


class InvalidOutputsError(OrchestrationError):
    """A unit's compute returned something other than a mapping or None."""

    default_category = ErrorCategory.VALIDATION

    def __init__(self, name: str, returned: Any):
        self.unit_name = name
        self.returned_type = type(returned).__name__
        super().__init__(
            f"Substack {name!r} must return a mapping of outputs or None, got {self.returned_type}",
            context=ErrorContext(unit=name),
        )


class UnknownOutputKeyError(OrchestrationError):
    """An accessor was asked for a key the unit does not declare."""

    default_category = ErrorCategory.VALIDATION

    def __init__(self, name: str, key: str, declared: Iterable[str]):
        self.unit_name = name
        self.key = key
        self.declared = sorted(declared)
        super().__init__(
            f"Substack {name!r} declares no output {key!r} (declared: {', '.join(self.declared)})",
            context=ErrorContext(unit=name, key=key),
        )


class RootAggregationError(OrchestrationError):
    """One or more unit output collections failed during root-mode dispatch.

    Carries the successful slots as well so callers can still report them.
    """

    def __init__(self, errors: Mapping[str, BaseException], outputs: Mapping[str, Any]):
        self.errors = dict(errors)
        self.outputs = dict(outputs)
        failed = ", ".join(self.errors)
        first = next(iter(self.errors.values()), None)
        super().__init__(
            f"Failed to collect outputs for {len(self.errors)} substack(s): {failed}",
            cause=first,
        )
        self.context.metadata["failed_units"] = list(self.errors)


# =============================================================================
# STORE ERRORS
# =============================================================================


class StoreError(SubstackError):
    """Remote output store read/write error."""

    default_category = ErrorCategory.STORE


class RemoteFetchError(StoreError):
    """Output lookup against the remote store failed."""

    default_retryable = True


class RemoteFetchTimeoutError(RemoteFetchError):
    """Output lookup did not finish within the configured timeout."""

    def __init__(self, identity: str, timeout: float, key: str | None = None):
        self.identity = identity
        self.timeout = timeout
        target = f"{identity}:{key}" if key else identity
        super().__init__(
            f"Timed out after {timeout}s fetching outputs from {target}",
            context=ErrorContext(identity=identity, key=key),
        )


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "SubstackError",
    # Config
    "ConfigError",
    "InvalidStackIdentityError",
    # Orchestration
    "OrchestrationError",
    "UnitNotFoundError",
    "InvalidUnitError",
    "InvalidOutputsError",
    "UnknownOutputKeyError",
    "RootAggregationError",
    # Store
    "StoreError",
    "RemoteFetchError",
    "RemoteFetchTimeoutError",
]
