"""
Result envelope for per-unit success/failure capture.

Root-mode dispatch fans out one output collection per registered unit. Each
collection settles to ``Ok(outputs)`` or ``Err(exception)`` so a failed
lookup never disturbs the slots that succeeded, and the caller decides the
policy for mixed outcomes afterwards.

Examples:
    >>> results = await asyncio.gather(capture(a.get_outputs), capture(b.get_outputs))
    >>> for result in results:
    ...     match result:
    ...         case Ok(outputs): ...
    ...         case Err(error): ...

Tags:
    result-pattern, partial-success, fan-out, substack
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful result containing a value."""

    value: T


@dataclass(frozen=True, slots=True)
class Err(Generic[T]):
    """Failed result containing an error."""

    error: Exception


Result = Ok[T] | Err[T]


async def capture(f: Callable[[], Awaitable[T]]) -> Result[T]:
    """
    Await ``f()`` and wrap the outcome.

    Only ``Exception`` subclasses are captured; cancellation and other
    ``BaseException`` types still propagate.
    """
    try:
        return Ok(await f())
    except Exception as e:
        return Err(e)


__all__ = [
    "Ok",
    "Err",
    "Result",
    "capture",
]
