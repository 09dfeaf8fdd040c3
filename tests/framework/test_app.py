"""Tests for substack.framework.app: pipeline loading and the entry point."""

import sys
import textwrap

import pytest

from substack.core.enums import RootFailurePolicy, RunMode, StoreBackend
from substack.core.errors import ConfigError, RootAggregationError
from substack.core.identity import StackIdentity
from substack.core.settings import SubstackSettings
from substack.framework.app import SubstackApp, load_pipeline
from substack.store import LocalOutputStore, MemoryOutputStore


@pytest.fixture
def pipeline_module(tmp_path, monkeypatch):
    """An importable module with two registration functions."""
    (tmp_path / "sample_units.py").write_text(
        textwrap.dedent(
            """
            def register_substacks(registry):
                registry.register(lambda: {"x": 1}, "a")
                registry.register(lambda: {"y": 2}, "b")


            def only_a(registry):
                registry.register(lambda: {"x": 1}, "a")


            not_callable = 3
            """
        )
    )
    monkeypatch.syspath_prepend(str(tmp_path))
    yield "sample_units"
    sys.modules.pop("sample_units", None)


class TestLoadPipeline:
    def test_default_function(self, pipeline_module):
        assert load_pipeline(pipeline_module).__name__ == "register_substacks"

    def test_explicit_function(self, pipeline_module):
        assert load_pipeline(f"{pipeline_module}:only_a").__name__ == "only_a"

    def test_missing_module(self):
        with pytest.raises(ConfigError):
            load_pipeline("no_such_pipeline_module")

    def test_missing_function(self, pipeline_module):
        with pytest.raises(ConfigError):
            load_pipeline(f"{pipeline_module}:nope")

    def test_not_callable(self, pipeline_module):
        with pytest.raises(ConfigError):
            load_pipeline(f"{pipeline_module}:not_callable")


class TestSubstackApp:
    def test_identity_from_string(self, make_app):
        app = make_app("dev.build")
        assert app.identity == StackIdentity("dev", "build")
        assert app.mode is RunMode.UNIT
        assert app.references.stack == "dev"

    def test_from_settings(self, tmp_path):
        settings = SubstackSettings(
            stack="prod",
            store=StoreBackend.LOCAL,
            store_dir=tmp_path / "out",
            fetch_timeout_seconds=3,
            root_failure_policy="abort",
        )
        app = SubstackApp.from_settings(settings)
        assert app.mode is RunMode.ROOT
        assert isinstance(app.store, LocalOutputStore)
        assert app.references.fetch_timeout == 3
        assert app.dispatcher.failure_policy is RootFailurePolicy.ABORT

    def test_from_settings_memory(self):
        app = SubstackApp.from_settings(SubstackSettings(store="memory"))
        assert isinstance(app.store, MemoryOutputStore)

    def test_bootstrap_with_module_path(self, make_app, pipeline_module):
        app = make_app("dev").bootstrap(pipeline_module)
        assert app.registry.names() == ["a", "b"]

    def test_bootstrap_with_function(self, make_app):
        app = make_app("dev").bootstrap(lambda registry: registry.register(lambda: {}, "only"))
        assert app.registry.names() == ["only"]

    @pytest.mark.asyncio
    async def test_main_unit_then_publish(self, make_app, store, pipeline_module):
        app = make_app("dev.b").bootstrap(pipeline_module)
        outputs = await app.main()
        await app.publish(outputs)

        assert outputs == {"y": 2}
        assert await store.fetch_outputs("dev.b") == {"y": 2}

    @pytest.mark.asyncio
    async def test_units_communicate_across_runs(self, store):
        def register(registry):
            a = registry.register(lambda: {"x": "from-a"}, "a")

            async def b():
                return {"seen": await a.get_output("x")}

            registry.register(b)

        first = SubstackApp("dev.a", store).bootstrap(register)
        await first.publish(await first.main())

        second = SubstackApp("dev.b", store).bootstrap(register)
        assert await second.main() == {"seen": "from-a"}

        root = SubstackApp("dev", store).bootstrap(register)
        assert await root.main() == {"a": {"x": "from-a"}, "b": {}}

    @pytest.mark.asyncio
    async def test_publish_none(self, make_app, store):
        app = make_app("dev.noop")
        await app.publish(None)
        assert await store.fetch_outputs("dev.noop") == {}

    @pytest.mark.asyncio
    async def test_failure_policy_passed_through(self, pipeline_module):
        class DownStore(MemoryOutputStore):
            async def fetch_outputs(self, identity):
                raise ConnectionError("down")

        app = SubstackApp("dev", DownStore(), failure_policy=RootFailurePolicy.ABORT)
        app.bootstrap(pipeline_module)
        with pytest.raises(RootAggregationError):
            await app.main()
