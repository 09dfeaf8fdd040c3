"""Output values: plain or secret.

The remote store returns an output either as a plain value or as a secret
value. Instead of an implicit "value or secretValue" fallback, the two cases
are a tagged variant, ``Plain`` / ``Secret``, with a single ``unwrap()``.

``Secret`` is also what a unit returns to mark one of its outputs sensitive
(``secret("password")``). A value that contains a secret anywhere inside it
is published as a secret as a whole.

Example::

    >>> details = OutputDetails(secret_value="hunter2")
    >>> output = details.to_output()
    >>> output.is_secret, output.unwrap()
    (True, 'hunter2')
    >>> repr(output)
    "Secret('[secret]')"
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")

MASK = "[secret]"


@dataclass(frozen=True, slots=True)
class Plain(Generic[T]):
    """An output value published in the clear."""

    value: T

    @property
    def is_secret(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True, slots=True, repr=False)
class Secret(Generic[T]):
    """An output value that must not be displayed or logged."""

    value: T

    @property
    def is_secret(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value

    def __repr__(self) -> str:
        return f"Secret({MASK!r})"

    def __str__(self) -> str:
        return MASK


OutputValue = Plain[T] | Secret[T]


@dataclass(frozen=True, slots=True)
class OutputDetails:
    """Raw answer of the store for one ``(identity, key)`` lookup.

    A field is present when it is not ``None``; both absent means the key has
    not been published yet.
    """

    value: Any = None
    secret_value: Any = None

    @property
    def is_empty(self) -> bool:
        return self.value is None and self.secret_value is None

    def to_output(self) -> OutputValue | None:
        if self.secret_value is not None:
            return Secret(self.secret_value)
        if self.value is not None:
            return Plain(self.value)
        return None


def secret(value: T) -> Secret[T]:
    """Mark ``value`` as secret."""
    if isinstance(value, Secret):
        return value
    return Secret(reveal(value))


def unwrap(value: Any) -> Any:
    """Strip one ``Plain`` / ``Secret`` layer; other values pass through."""
    if isinstance(value, (Plain, Secret)):
        return value.unwrap()
    return value


def contains_secret(value: Any) -> bool:
    """True if ``value`` is, or nests, a ``Secret``."""
    if isinstance(value, Secret):
        return True
    if isinstance(value, Plain):
        return contains_secret(value.value)
    if isinstance(value, dict):
        return any(contains_secret(v) for v in value.values())
    if isinstance(value, (list, tuple)):
        return any(contains_secret(v) for v in value)
    return False


def reveal(value: Any) -> Any:
    """Recursively unwrap every ``Plain`` / ``Secret`` inside ``value``."""
    if isinstance(value, (Plain, Secret)):
        return reveal(value.unwrap())
    if isinstance(value, dict):
        return {k: reveal(v) for k, v in value.items()}
    if isinstance(value, list):
        return [reveal(v) for v in value]
    if isinstance(value, tuple):
        return tuple(reveal(v) for v in value)
    return value


def mask(value: Any) -> Any:
    """Replace every secret inside ``value`` with a fixed marker."""
    if isinstance(value, Secret):
        return MASK
    if isinstance(value, Plain):
        return mask(value.value)
    if isinstance(value, dict):
        return {k: mask(v) for k, v in value.items()}
    if isinstance(value, list):
        return [mask(v) for v in value]
    if isinstance(value, tuple):
        return tuple(mask(v) for v in value)
    return value
