"""Reference cache: one output handle per referenced substack.

Manifesto:
    Every output lookup a unit makes goes through a handle bound to the
    producing substack's identity. Setting up a handle is the expensive part
    of talking to a remote store, so a process keeps exactly one per
    identity and reuses it for every key and every caller.

Architecture:
    ::

        accessor.get_output("imageDigest")
              │
              ▼
        ReferenceCache.resolve("build") ──► "dev.build" cached? ─► same OutputHandle
              │                                     │ no
              │                                     ▼
              │                          OutputHandle("dev.build")  (created once)
              ▼
        OutputHandle.get_output_details("imageDigest")
              │
              ▼
        OutputStore.fetch_output_details("dev.build", "imageDigest")

Tags:
    cache, stack-reference, remote-lookup, substack
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import Any, TypeVar

from substack.core.errors import RemoteFetchError, RemoteFetchTimeoutError, SubstackError
from substack.core.identity import StackIdentity
from substack.core.logging import get_logger
from substack.core.values import OutputDetails
from substack.store.base import OutputStore

logger = get_logger(__name__)

T = TypeVar("T")


class OutputHandle:
    """
    Reference to one stack identity's published outputs.

    Only ``ReferenceCache`` creates handles. Store failures surface as
    ``RemoteFetchError`` with the original exception chained; a configured
    ``fetch_timeout`` bounds each lookup.
    """

    def __init__(
        self,
        identity: StackIdentity,
        store: OutputStore,
        fetch_timeout: float | None = None,
    ) -> None:
        self.identity = identity
        self._store = store
        self._fetch_timeout = fetch_timeout

    @property
    def name(self) -> str:
        return str(self.identity)

    async def _fetch(self, request: Awaitable[T], key: str | None = None) -> T:
        deadline = asyncio.timeout(self._fetch_timeout)
        try:
            async with deadline:
                return await request
        except RemoteFetchError:
            raise
        except TimeoutError as e:
            if deadline.expired():
                raise RemoteFetchTimeoutError(self.name, self._fetch_timeout, key) from e
            raise RemoteFetchError(
                f"Failed to fetch outputs from {self.name}: {e}",
                cause=e,
            ).with_context(identity=self.name, key=key) from e
        except SubstackError as e:
            raise RemoteFetchError(str(e), cause=e).with_context(identity=self.name, key=key) from e
        except Exception as e:
            raise RemoteFetchError(
                f"Failed to fetch outputs from {self.name}: {e}",
                cause=e,
            ).with_context(identity=self.name, key=key) from e

    async def get_output_details(self, key: str) -> OutputDetails:
        """Fetch one output's raw details."""
        details = await self._fetch(self._store.fetch_output_details(self.name, key), key)
        logger.debug(
            "output.fetched",
            identity=self.name,
            key=key,
            present=not details.is_empty,
            secret=details.secret_value is not None,
        )
        return details

    async def get_outputs(self) -> dict[str, Any]:
        """Fetch the whole published output set."""
        outputs = await self._fetch(self._store.fetch_outputs(self.name))
        logger.debug("outputs.fetched", identity=self.name, keys=sorted(outputs))
        return outputs

    def __repr__(self) -> str:
        return f"OutputHandle({self.name!r})"


class ReferenceCache:
    """
    Cache-or-create store of ``OutputHandle`` per producing unit.

    Referential stability: ``resolve("build") is resolve("build")``.
    All mutation happens synchronously, so concurrent accessors sharing one
    event loop can't create duplicates.

    Example::

        cache = ReferenceCache("dev", store)
        handle = cache.resolve("build")   # identity "dev.build"
    """

    def __init__(
        self,
        stack: str,
        store: OutputStore,
        fetch_timeout: float | None = None,
    ) -> None:
        self.stack = stack
        self.store = store
        self.fetch_timeout = fetch_timeout
        self._handles: dict[StackIdentity, OutputHandle] = {}

    def resolve(self, unit_name: str) -> OutputHandle:
        """Return the handle for ``<stack>.<unit_name>``, creating it on first use."""
        identity = StackIdentity(self.stack, unit_name)
        handle = self._handles.get(identity)
        if handle is None:
            handle = OutputHandle(identity, self.store, self.fetch_timeout)
            self._handles[identity] = handle
            logger.debug("reference.created", identity=str(identity))
        return handle

    def identities(self) -> list[str]:
        """Identities with a cached handle, in creation order."""
        return [str(identity) for identity in self._handles]

    def __contains__(self, unit_name: object) -> bool:
        if not isinstance(unit_name, str) or not unit_name:
            return False
        return StackIdentity(self.stack, unit_name) in self._handles

    def __len__(self) -> int:
        return len(self._handles)
