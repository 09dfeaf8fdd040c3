"""Local filesystem output store backend."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from substack.core.errors import StoreError
from substack.core.identity import StackIdentity
from substack.core.logging import get_logger
from substack.core.values import OutputDetails
from substack.store.base import OutputStore, decode_entry, encode_entry, entry_to_output

logger = get_logger(__name__)


class LocalOutputStore(OutputStore):
    """
    Local filesystem output store.

    One JSON document per stack identity::

        <base_path>/dev/dev.json
        <base_path>/dev/dev.build.json

        {
          "identity": "dev.build",
          "updated_at": "2026-10-19T12:00:00+00:00",
          "outputs": {
            "imageVersion": {"value": "1.0.0"},
            "registryPassword": {"secretValue": "..."}
          }
        }

    Secret values are kept apart from plain ones but are not encrypted.
    File IO runs in a worker thread so lookups don't block the event loop.
    """

    def __init__(self, base_path: str | Path):
        self.base_path = Path(base_path).expanduser().resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)
        logger.debug("local_store_initialized", base_path=str(self.base_path))

    def _resolve_path(self, identity: str) -> Path:
        """Resolve a stack identity to its document path."""
        parsed = StackIdentity.parse(identity)
        full_path = self.base_path / parsed.stack / f"{parsed}.json"

        # Security: ensure path is within base_path
        try:
            full_path.resolve().relative_to(self.base_path)
        except ValueError:
            raise StoreError(f"Invalid identity: {identity} (outside store directory)") from None

        return full_path

    def _read_entries(self, identity: str) -> dict[str, Any]:
        path = self._resolve_path(identity)
        if not path.exists():
            return {}
        try:
            document = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"Unreadable output document for {identity}", cause=e) from e
        return document.get("outputs", {})

    def _write_entries(self, identity: str, entries: dict[str, Any]) -> Path:
        path = self._resolve_path(identity)
        path.parent.mkdir(parents=True, exist_ok=True)
        document = {
            "identity": identity,
            "updated_at": datetime.now(UTC).isoformat(),
            "outputs": entries,
        }
        try:
            payload = json.dumps(document, indent=2, sort_keys=True)
        except TypeError as e:
            raise StoreError(f"Outputs of {identity} are not JSON serializable", cause=e) from e
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(payload, encoding="utf-8")
        tmp_path.replace(path)
        return path

    async def fetch_output_details(self, identity: str, key: str) -> OutputDetails:
        entries = await asyncio.to_thread(self._read_entries, identity)
        return decode_entry(entries.get(key))

    async def fetch_outputs(self, identity: str) -> dict[str, Any]:
        entries = await asyncio.to_thread(self._read_entries, identity)
        return {key: entry_to_output(entry) for key, entry in entries.items()}

    async def publish_outputs(self, identity: str, outputs: Mapping[str, Any]) -> None:
        entries = {key: encode_entry(value) for key, value in outputs.items()}
        path = await asyncio.to_thread(self._write_entries, identity, entries)
        logger.info("store.published", backend="local", identity=identity, path=str(path), keys=sorted(entries))

    def identities(self) -> list[str]:
        """List every identity with a published document."""
        return sorted(p.name[: -len(".json")] for p in self.base_path.glob("*/*.json"))
