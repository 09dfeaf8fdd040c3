"""
Tests for substack.framework.dispatcher.

Tests cover:
- Root mode aggregates published outputs without running any compute
- Unit mode runs exactly the selected compute, once
- Failure policies for root aggregation
- Output validation
"""

import pytest

from substack.core.enums import RootFailurePolicy, RunMode
from substack.core.errors import (
    InvalidOutputsError,
    RemoteFetchError,
    RootAggregationError,
    UnitNotFoundError,
)
from substack.core.identity import StackIdentity
from substack.core.values import Secret
from substack.framework.dispatcher import RunDispatcher
from substack.framework.references import ReferenceCache
from substack.framework.registry import UnitRegistry
from substack.store.memory import MemoryOutputStore


class FlakyStore(MemoryOutputStore):
    """Fails whole-set fetches for the given identities."""

    def __init__(self, seed, failing):
        super().__init__(seed)
        self.failing = set(failing)

    async def fetch_outputs(self, identity):
        if identity in self.failing:
            raise ConnectionError(f"{identity} unreachable")
        return await super().fetch_outputs(identity)


def make_dispatcher(identity, store, policy=RootFailurePolicy.PARTIAL):
    identity = StackIdentity.parse(identity)
    references = ReferenceCache(identity.stack, store)
    registry = UnitRegistry(references)
    dispatcher = RunDispatcher(identity, registry, references, failure_policy=policy)
    return dispatcher, registry


@pytest.fixture
def counter():
    return {"a": 0, "b": 0}


def register_counted(registry, counter):
    def a():
        counter["a"] += 1
        return {"x": 1}

    async def b():
        counter["b"] += 1
        return {"y": 2}

    registry.register(a)
    registry.register(b)


class TestMode:
    def test_root(self, store):
        dispatcher, _ = make_dispatcher("dev", store)
        assert dispatcher.mode is RunMode.ROOT

    def test_unit(self, store):
        dispatcher, _ = make_dispatcher("dev.b", store)
        assert dispatcher.mode is RunMode.UNIT


class TestRootMode:
    @pytest.mark.asyncio
    async def test_aggregates_published_outputs_without_computing(self, counter):
        store = MemoryOutputStore({"dev.a": {"x": "published-a"}, "dev.b": {"y": "published-b"}})
        dispatcher, registry = make_dispatcher("dev", store)
        register_counted(registry, counter)

        outputs = await dispatcher.run()

        assert outputs == {"a": {"x": "published-a"}, "b": {"y": "published-b"}}
        assert list(outputs) == ["a", "b"]
        assert counter == {"a": 0, "b": 0}

    @pytest.mark.asyncio
    async def test_unpublished_unit_is_empty(self, counter, store):
        dispatcher, registry = make_dispatcher("dev", store)
        register_counted(registry, counter)
        assert await dispatcher.run() == {"a": {}, "b": {}}

    @pytest.mark.asyncio
    async def test_empty_registry(self, store):
        dispatcher, _ = make_dispatcher("dev", store)
        assert await dispatcher.run() == {}

    @pytest.mark.asyncio
    async def test_secrets_stay_wrapped(self, counter):
        store = MemoryOutputStore({"dev.a": {"password": Secret("pw")}})
        dispatcher, registry = make_dispatcher("dev", store)
        register_counted(registry, counter)
        outputs = await dispatcher.run()
        assert outputs["a"]["password"] == Secret("pw")

    @pytest.mark.asyncio
    async def test_partial_policy_drops_failed_units(self, counter):
        store = FlakyStore({"dev.a": {"x": 1}}, failing=["dev.b"])
        dispatcher, registry = make_dispatcher("dev", store)
        register_counted(registry, counter)

        outputs = await dispatcher.run()
        assert outputs == {"a": {"x": 1}}

    @pytest.mark.asyncio
    async def test_collect_reports_errors(self, counter):
        store = FlakyStore({"dev.a": {"x": 1}}, failing=["dev.b"])
        dispatcher, registry = make_dispatcher("dev", store)
        register_counted(registry, counter)

        aggregate = await dispatcher.collect()
        assert not aggregate.ok
        assert aggregate.outputs == {"a": {"x": 1}}
        assert isinstance(aggregate.errors["b"], RemoteFetchError)

    @pytest.mark.asyncio
    async def test_abort_policy_raises_with_partial_outputs(self, counter):
        store = FlakyStore({"dev.a": {"x": 1}}, failing=["dev.b"])
        dispatcher, registry = make_dispatcher("dev", store, RootFailurePolicy.ABORT)
        register_counted(registry, counter)

        with pytest.raises(RootAggregationError) as exc_info:
            await dispatcher.run()
        assert list(exc_info.value.errors) == ["b"]
        assert exc_info.value.outputs == {"a": {"x": 1}}

    @pytest.mark.asyncio
    async def test_abort_policy_without_failures(self, counter, store):
        dispatcher, registry = make_dispatcher("dev", store, "abort")
        register_counted(registry, counter)
        assert await dispatcher.run() == {"a": {}, "b": {}}


class TestUnitMode:
    @pytest.mark.asyncio
    async def test_runs_selected_compute_once(self, counter, store):
        dispatcher, registry = make_dispatcher("dev.b", store)
        register_counted(registry, counter)

        outputs = await dispatcher.run()

        assert outputs == {"y": 2}
        assert counter == {"a": 0, "b": 1}

    @pytest.mark.asyncio
    async def test_sync_compute(self, counter, store):
        dispatcher, registry = make_dispatcher("dev.a", store)
        register_counted(registry, counter)
        assert await dispatcher.run() == {"x": 1}
        assert counter == {"a": 1, "b": 0}

    @pytest.mark.asyncio
    async def test_unknown_unit(self, counter, store):
        dispatcher, registry = make_dispatcher("dev.z", store)
        register_counted(registry, counter)

        with pytest.raises(UnitNotFoundError) as exc_info:
            await dispatcher.run()
        assert exc_info.value.unit_name == "z"
        assert counter == {"a": 0, "b": 0}

    @pytest.mark.asyncio
    async def test_none_outputs(self, store):
        dispatcher, registry = make_dispatcher("dev.noop", store)
        registry.register(lambda: None, "noop")
        assert await dispatcher.run() is None

    @pytest.mark.asyncio
    async def test_invalid_outputs(self, store):
        dispatcher, registry = make_dispatcher("dev.bad", store)
        registry.register(lambda: ["not", "a", "mapping"], "bad")
        with pytest.raises(InvalidOutputsError):
            await dispatcher.run()

    @pytest.mark.asyncio
    async def test_compute_error_propagates(self, store):
        async def broken():
            raise RuntimeError("build failed")

        dispatcher, registry = make_dispatcher("dev.broken", store)
        registry.register(broken)
        with pytest.raises(RuntimeError, match="build failed"):
            await dispatcher.run()

    @pytest.mark.asyncio
    async def test_compute_reads_other_unit_outputs(self, store):
        await store.publish_outputs("dev.a", {"x": 41})
        dispatcher, registry = make_dispatcher("dev.b", store)
        a = registry.register(lambda: {"x": 0}, "a")

        async def b():
            return {"y": await a.get_output("x") + 1}

        registry.register(b)
        assert await dispatcher.run() == {"y": 42}
