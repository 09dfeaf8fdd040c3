"""Application wiring and the process entry point.

``SubstackApp`` owns one reference cache, one unit registry and one
dispatcher for a process run. A pipeline module registers its units through
``app.registry`` during bootstrap; ``await app.main()`` then runs the
dispatcher and returns the process's published output set.

Usage::

    app = SubstackApp.from_settings(get_settings())
    app.bootstrap("substack.pipeline")
    outputs = await app.main()
    await app.publish(outputs)
"""

from __future__ import annotations

import importlib
from collections.abc import Callable, Mapping
from typing import Any

from substack.core.enums import RootFailurePolicy, RunMode
from substack.core.errors import ConfigError
from substack.core.identity import StackIdentity
from substack.core.logging import get_logger
from substack.core.settings import SubstackSettings
from substack.framework.dispatcher import RunDispatcher
from substack.framework.references import ReferenceCache
from substack.framework.registry import Outputs, UnitRegistry
from substack.store import OutputStore, create_store

logger = get_logger(__name__)

DEFAULT_REGISTER_FUNCTION = "register_substacks"

Bootstrap = Callable[[UnitRegistry], Any]


def load_pipeline(path: str) -> Bootstrap:
    """
    Resolve a pipeline path to its registration function.

    ``"pkg.module"`` resolves to ``pkg.module.register_substacks``;
    ``"pkg.module:func"`` to ``pkg.module.func``.
    """
    module_name, _, attr = path.partition(":")
    attr = attr or DEFAULT_REGISTER_FUNCTION
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigError(f"Cannot import pipeline module {module_name!r}", cause=e) from e
    func = getattr(module, attr, None)
    if not callable(func):
        raise ConfigError(f"Pipeline {module_name!r} has no callable {attr!r}")
    return func


class SubstackApp:
    """
    One process run: identity, store, cache, registry and dispatcher.

    Parameters
    ----------
    identity
        Stack identity (``StackIdentity`` or its dotted string form).
    store
        Remote output store all accessors read from.
    fetch_timeout
        Upper bound for a single output lookup, ``None`` to wait forever.
    failure_policy
        Root-mode handling of failed collections.
    """

    def __init__(
        self,
        identity: StackIdentity | str,
        store: OutputStore,
        *,
        fetch_timeout: float | None = None,
        failure_policy: RootFailurePolicy = RootFailurePolicy.PARTIAL,
    ) -> None:
        if isinstance(identity, str):
            identity = StackIdentity.parse(identity)
        self.identity = identity
        self.store = store
        self.references = ReferenceCache(identity.stack, store, fetch_timeout=fetch_timeout)
        self.registry = UnitRegistry(self.references)
        self.dispatcher = RunDispatcher(
            identity,
            self.registry,
            self.references,
            failure_policy=failure_policy,
        )

    @classmethod
    def from_settings(cls, settings: SubstackSettings, store: OutputStore | None = None) -> SubstackApp:
        return cls(
            settings.identity,
            store or create_store(settings),
            fetch_timeout=settings.fetch_timeout_seconds,
            failure_policy=settings.root_failure_policy,
        )

    @property
    def mode(self) -> RunMode:
        return self.dispatcher.mode

    def bootstrap(self, pipeline: str | Bootstrap) -> SubstackApp:
        """Register the pipeline's units (module path or registration function)."""
        register = load_pipeline(pipeline) if isinstance(pipeline, str) else pipeline
        register(self.registry)
        logger.debug("app.bootstrapped", identity=str(self.identity), units=self.registry.names())
        return self

    async def run(self) -> Outputs | None:
        return await self.dispatcher.run()

    async def main(self) -> Outputs | None:
        """No-argument entry: run the dispatcher, return the published output set."""
        return await self.run()

    async def publish(self, outputs: Mapping[str, Any] | None) -> None:
        """Publish a run's outputs under this process's identity."""
        await self.store.publish_outputs(str(self.identity), outputs or {})
