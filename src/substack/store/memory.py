"""In-memory output store, for tests and dry runs."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from substack.core.logging import get_logger
from substack.core.values import OutputDetails
from substack.store.base import OutputStore, decode_entry, encode_entry, entry_to_output

logger = get_logger(__name__)


class MemoryOutputStore(OutputStore):
    """
    Output store backed by a dict of ``identity -> key -> entry``.

    ``fetch_count`` counts lookups so tests can tell whether a value came
    from the store.

    Example::

        store = MemoryOutputStore({"dev.build": {"imageVersion": "1.0.0"}})
        details = await store.fetch_output_details("dev.build", "imageVersion")
    """

    def __init__(self, seed: Mapping[str, Mapping[str, Any]] | None = None):
        self._entries: dict[str, dict[str, dict[str, Any]]] = {}
        self.fetch_count = 0
        for identity, outputs in (seed or {}).items():
            self._store(identity, outputs)

    def _store(self, identity: str, outputs: Mapping[str, Any]) -> None:
        self._entries[identity] = {key: encode_entry(value) for key, value in outputs.items()}

    async def fetch_output_details(self, identity: str, key: str) -> OutputDetails:
        self.fetch_count += 1
        return decode_entry(self._entries.get(identity, {}).get(key))

    async def fetch_outputs(self, identity: str) -> dict[str, Any]:
        self.fetch_count += 1
        entries = self._entries.get(identity, {})
        return {key: entry_to_output(entry) for key, entry in entries.items()}

    async def publish_outputs(self, identity: str, outputs: Mapping[str, Any]) -> None:
        self._store(identity, outputs)
        logger.debug("store.published", backend="memory", identity=identity, keys=sorted(outputs))

    def identities(self) -> list[str]:
        return sorted(self._entries)
