"""
Run dispatcher: root mode vs unit mode.

The stack identity of the process decides the branch:

- **Root** (``"dev"``): fan out one output collection per registered unit,
  in registration order, and return ``{unit_name: its_outputs}``. No unit's
  compute runs.
- **Unit** (``"dev.build"``): run the ``build`` compute exactly once and
  return its outputs verbatim.

Root-mode collections run concurrently through ``asyncio.gather``; each one
settles to ``Ok`` / ``Err`` on its own so a failure never touches another
unit's slot. What happens with failures is the ``RootFailurePolicy``.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from substack.core.enums import RootFailurePolicy, RunMode
from substack.core.errors import InvalidOutputsError, RootAggregationError
from substack.core.identity import StackIdentity
from substack.core.logging import LogContext, get_logger, log_step
from substack.core.result import Err, Ok, capture
from substack.framework.references import ReferenceCache
from substack.framework.registry import Outputs, UnitRegistry

log = get_logger(__name__)


@dataclass
class RootAggregate:
    """Outcome of root-mode collection.

    ``outputs`` holds every unit whose outputs were collected, in
    registration order; ``errors`` holds the failures by unit name.
    """

    outputs: dict[str, dict[str, Any]] = field(default_factory=dict)
    errors: dict[str, Exception] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


class RunDispatcher:
    """
    Dispatcher for one process run.

    Parameters
    ----------
    identity
        Stack identity of this run; fixed for the process lifetime.
    registry
        Units registered during bootstrap.
    references
        Reference cache shared with the registry's accessors.
    failure_policy
        Root-mode policy for failed collections (default: partial).
    """

    def __init__(
        self,
        identity: StackIdentity,
        registry: UnitRegistry,
        references: ReferenceCache,
        *,
        failure_policy: RootFailurePolicy = RootFailurePolicy.PARTIAL,
    ) -> None:
        self.identity = identity
        self.registry = registry
        self.references = references
        self.failure_policy = RootFailurePolicy(failure_policy)

    @property
    def mode(self) -> RunMode:
        return RunMode.ROOT if self.identity.is_root else RunMode.UNIT

    async def run(self) -> Outputs | None:
        """Dispatch according to the identity and return the run's outputs."""
        async with LogContext(stack=self.identity.stack, substack=self.identity.substack):
            log.info("dispatch.start", mode=self.mode.value, units=len(self.registry))
            if self.mode is RunMode.ROOT:
                return await self.run_root()
            return await self.run_unit(self.identity.substack)

    # ── Root mode ────────────────────────────────────────────────────

    async def collect(self) -> RootAggregate:
        """Collect every registered unit's published outputs concurrently."""
        names = self.registry.names()
        handles = [self.references.resolve(name) for name in names]

        with log_step("dispatch.root", units=len(names)) as step:
            results = await asyncio.gather(*(capture(handle.get_outputs) for handle in handles))

            aggregate = RootAggregate()
            for name, result in zip(names, results):
                match result:
                    case Ok(outputs):
                        aggregate.outputs[name] = outputs
                    case Err(error):
                        aggregate.errors[name] = error
                        log.error(
                            "dispatch.root.collect_failed",
                            unit=name,
                            error_type=type(error).__name__,
                            error_message=str(error),
                        )
            step["collected"] = len(aggregate.outputs)
            step["failed"] = len(aggregate.errors)

        return aggregate

    async def run_root(self) -> dict[str, dict[str, Any]]:
        """Root mode: aggregate outputs, applying the failure policy."""
        aggregate = await self.collect()
        if aggregate.errors and self.failure_policy is RootFailurePolicy.ABORT:
            raise RootAggregationError(aggregate.errors, aggregate.outputs)
        return aggregate.outputs

    # ── Unit mode ────────────────────────────────────────────────────

    async def run_unit(self, name: str) -> Outputs | None:
        """Unit mode: run ``name``'s compute once and return its outputs.

        Raises:
            UnitNotFoundError: If no unit is registered under ``name``
        """
        unit = self.registry.get(name)

        async with LogContext(unit=name):
            with log_step("dispatch.unit") as step:
                result = unit.compute()
                if inspect.isawaitable(result):
                    result = await result
                if result is not None and not isinstance(result, Mapping):
                    raise InvalidOutputsError(name, result)
                step["outputs"] = sorted(result) if result is not None else []

        return result
