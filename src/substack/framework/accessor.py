"""Output accessors.

``UnitRegistry.register`` hands back a ``SubstackRef`` bound to the unit it
registered. Other units (and the unit itself) await it to read that unit's
published outputs::

    registry_config = await provision.get_output("dockerRegistry")
    previous_digest = await build.get_output("imageDigest")

Each call goes through the reference cache to the remote store, never to the
in-process compute, even if the producing unit already ran in this process.
Reading a key is how a unit declares a runtime dependency on the producer
having published it in an earlier run; ``None`` means "not published yet".
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Any, Generic, TypeVar, is_typeddict

from substack.core.errors import InvalidUnitError, UnknownOutputKeyError
from substack.core.values import OutputValue

if TYPE_CHECKING:
    from substack.framework.references import OutputHandle, ReferenceCache

OutputsT = TypeVar("OutputsT", bound=Mapping[str, Any])

OutputSchema = Iterable[str] | type


def declared_keys(outputs: OutputSchema | None) -> frozenset[str] | None:
    """Normalize an output schema to a set of key names.

    Accepts ``None`` (any key), an iterable of names, or a ``TypedDict``
    class whose keys are the declared outputs.
    """
    if outputs is None:
        return None
    if isinstance(outputs, type):
        if not is_typeddict(outputs):
            raise InvalidUnitError(f"Output schema {outputs.__name__} is not a TypedDict")
        return frozenset(outputs.__required_keys__ | outputs.__optional_keys__)
    if isinstance(outputs, str):
        return frozenset([outputs])
    return frozenset(outputs)


class SubstackRef(Generic[OutputsT]):
    """
    Typed accessor for one unit's published outputs.

    Parameters
    ----------
    name
        Producing unit name; the handle identity is ``<stack>.<name>``.
    references
        Process-wide reference cache.
    outputs
        Declared output keys, or ``None`` to accept any key. Unknown keys
        fail before any remote fetch.
    schema
        Callable returning the unit's current declared keys, read on every
        key check; takes precedence over ``outputs``.
    """

    def __init__(
        self,
        name: str,
        references: ReferenceCache,
        outputs: frozenset[str] | None = None,
        *,
        schema: Callable[[], frozenset[str] | None] | None = None,
    ) -> None:
        self.name = name
        self._references = references
        self._outputs = outputs
        self._schema = schema

    @property
    def outputs(self) -> frozenset[str] | None:
        if self._schema is not None:
            return self._schema()
        return self._outputs

    @property
    def handle(self) -> OutputHandle:
        return self._references.resolve(self.name)

    def _check_key(self, key: str) -> None:
        declared = self.outputs
        if declared is not None and key not in declared:
            raise UnknownOutputKeyError(self.name, key, declared)

    async def get_output_details(self, key: str) -> OutputValue | None:
        """Fetch ``key`` as ``Plain`` / ``Secret``, or ``None`` if not published."""
        self._check_key(key)
        details = await self.handle.get_output_details(key)
        return details.to_output()

    async def get_output(self, key: str) -> Any:
        """Fetch ``key`` and unwrap it; secrets come back in the clear."""
        output = await self.get_output_details(key)
        if output is None:
            return None
        return output.unwrap()

    async def get_outputs(self) -> dict[str, Any]:
        """Fetch the unit's whole published output set (secrets stay wrapped)."""
        return await self.handle.get_outputs()

    def __repr__(self) -> str:
        return f"SubstackRef({self.name!r})"
