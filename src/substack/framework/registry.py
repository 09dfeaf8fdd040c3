"""Unit registry for registering substacks.

Manifesto:
    A pipeline module registers its units once at bootstrap; the dispatcher
    then picks one to execute (or aggregates all of them) without knowing
    what they do. The registry is an explicit instance passed to bootstrap
    code, not a module global, so tests stay isolated.

Tags:
    registry, substack, bootstrap, deferred-unit

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from substack.core.errors import InvalidUnitError, UnitNotFoundError
from substack.core.logging import get_logger
from substack.framework.accessor import OutputSchema, SubstackRef, declared_keys
from substack.framework.references import ReferenceCache

logger = get_logger(__name__)

Outputs = Mapping[str, Any]
ComputeFn = Callable[[], Outputs | None | Awaitable[Outputs | None]]


@dataclass(frozen=True, slots=True)
class DeferredUnit:
    """A registered unit: its name and the zero-argument compute to run."""

    name: str
    compute: ComputeFn
    outputs: frozenset[str] | None = None


class UnitRegistry:
    """
    Ordered mapping of unit name to deferred compute.

    Registration order is iteration order. Re-registering a name silently
    replaces its compute and keeps the name's original position.

    Example::

        registry = UnitRegistry(ReferenceCache("dev", store))

        @registry.substack(outputs=("k8sProvider",))
        async def provision():
            return {"k8sProvider": {"kubeconfig": "..."}}

        kube = await provision.get_output("k8sProvider")
    """

    def __init__(self, references: ReferenceCache) -> None:
        self.references = references
        self._units: dict[str, DeferredUnit] = {}

    def register(
        self,
        compute: ComputeFn,
        name: str | None = None,
        *,
        outputs: OutputSchema | None = None,
    ) -> SubstackRef:
        """Register ``compute`` under ``name`` (default: its ``__name__``).

        Returns the accessor other units use to read this unit's outputs.
        """
        if not callable(compute):
            raise InvalidUnitError(f"Substack compute must be callable, got {type(compute).__name__}")
        if name is None:
            name = getattr(compute, "__name__", "")
            if name.startswith("<"):
                raise InvalidUnitError(f"Substack compute {name} needs an explicit name")
        if not name:
            raise InvalidUnitError("Substack name must not be empty")

        keys = declared_keys(outputs)
        replaced = name in self._units
        self._units[name] = DeferredUnit(name=name, compute=compute, outputs=keys)
        logger.debug(
            "substack.replaced" if replaced else "substack.registered",
            name=name,
            outputs=sorted(keys) if keys is not None else None,
        )
        return self.accessor(name)

    def substack(
        self,
        name: str | None = None,
        *,
        outputs: OutputSchema | None = None,
    ) -> Callable[[ComputeFn], SubstackRef]:
        """Decorator form of :meth:`register`; the decorated name becomes the accessor."""

        def decorator(compute: ComputeFn) -> SubstackRef:
            return self.register(compute, name, outputs=outputs)

        return decorator

    def get(self, name: str) -> DeferredUnit:
        """Get a registered unit by name."""
        try:
            return self._units[name]
        except KeyError:
            raise UnitNotFoundError(name, available=self._units) from None

    def accessor(self, name: str) -> SubstackRef:
        """Accessor for an already registered unit."""
        self.get(name)
        return SubstackRef(name, self.references, schema=lambda: self._declared(name))

    def _declared(self, name: str) -> frozenset[str] | None:
        unit = self._units.get(name)
        return unit.outputs if unit is not None else None

    def names(self) -> list[str]:
        """Registered unit names in registration order."""
        return list(self._units)

    def clear(self) -> None:
        """Clear registry (for testing)."""
        self._units.clear()

    def __contains__(self, name: object) -> bool:
        return name in self._units

    def __len__(self) -> int:
        return len(self._units)

    def __iter__(self) -> Iterator[DeferredUnit]:
        return iter(list(self._units.values()))
