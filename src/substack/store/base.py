"""Base output store interface.

The remote output store is the only thing the orchestration core talks to
when a unit reads another unit's outputs. It is keyed by full stack identity
(``"dev.build"``) and output key; each entry is either a plain value or a
secret value.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from substack.core.values import OutputDetails, Secret, contains_secret, reveal


class OutputStore(ABC):
    """Abstract base class for output store backends.

    All methods are coroutines; a lookup suspends only the unit awaiting it.
    """

    @abstractmethod
    async def fetch_output_details(self, identity: str, key: str) -> OutputDetails:
        """
        Fetch one output of a stack.

        Args:
            identity: Full stack identity (e.g., "dev.build")
            key: Output key (e.g., "imageDigest")

        Returns:
            OutputDetails; empty when the key has not been published
        """
        ...

    @abstractmethod
    async def fetch_outputs(self, identity: str) -> dict[str, Any]:
        """
        Fetch every published output of a stack.

        Secret entries come back wrapped in ``Secret``.

        Returns:
            Mapping of output key to value; empty if nothing was published
        """
        ...

    @abstractmethod
    async def publish_outputs(self, identity: str, outputs: Mapping[str, Any]) -> None:
        """
        Replace the published output set of a stack.

        Values that are, or contain, a ``Secret`` are stored as secret values.
        """
        ...


def encode_entry(value: Any) -> dict[str, Any]:
    """Turn one unit output into a store entry (``value`` or ``secretValue``)."""
    if contains_secret(value):
        return {"secretValue": reveal(value)}
    return {"value": reveal(value)}


def decode_entry(entry: Mapping[str, Any] | None) -> OutputDetails:
    if not entry:
        return OutputDetails()
    return OutputDetails(value=entry.get("value"), secret_value=entry.get("secretValue"))


def entry_to_output(entry: Mapping[str, Any]) -> Any:
    """Value of an entry as seen by root aggregation: secrets stay wrapped."""
    if entry.get("secretValue") is not None:
        return Secret(entry["secretValue"])
    return entry.get("value")
