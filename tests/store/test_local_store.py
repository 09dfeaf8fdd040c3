"""Tests for substack.store.local."""

import json

import pytest

from substack.core.errors import StoreError, SubstackError
from substack.core.values import Plain, Secret
from substack.store.local import LocalOutputStore


@pytest.fixture
def base(tmp_path):
    return tmp_path / "outputs"


class TestLocalOutputStore:
    def test_creates_base_dir(self, base):
        LocalOutputStore(base)
        assert base.is_dir()

    @pytest.mark.asyncio
    async def test_publish_writes_document(self, base):
        store = LocalOutputStore(base)
        await store.publish_outputs("dev.build", {"imageVersion": "1.0.0", "token": Secret("t")})

        document = json.loads((base / "dev" / "dev.build.json").read_text())
        assert document["identity"] == "dev.build"
        assert "updated_at" in document
        assert document["outputs"] == {
            "imageVersion": {"value": "1.0.0"},
            "token": {"secretValue": "t"},
        }
        assert not list(base.glob("*/*.tmp"))

    @pytest.mark.asyncio
    async def test_round_trip_between_instances(self, base):
        await LocalOutputStore(base).publish_outputs("dev.build", {"imageDigest": "sha256:abc"})

        reader = LocalOutputStore(base)
        details = await reader.fetch_output_details("dev.build", "imageDigest")
        assert details.to_output() == Plain("sha256:abc")
        assert await reader.fetch_outputs("dev.build") == {"imageDigest": "sha256:abc"}

    @pytest.mark.asyncio
    async def test_missing_document_is_empty(self, base):
        store = LocalOutputStore(base)
        assert (await store.fetch_output_details("dev.build", "imageDigest")).is_empty
        assert await store.fetch_outputs("dev.build") == {}

    @pytest.mark.asyncio
    async def test_secrets_stay_wrapped_in_output_set(self, base):
        store = LocalOutputStore(base)
        await store.publish_outputs("dev.provision", {"dockerRegistry": {"password": Secret("pw")}})
        outputs = await store.fetch_outputs("dev.provision")
        assert outputs == {"dockerRegistry": Secret({"password": "pw"})}

    @pytest.mark.asyncio
    async def test_root_identity(self, base):
        store = LocalOutputStore(base)
        await store.publish_outputs("dev", {"build": {"imageVersion": "1.0.0"}})
        assert (base / "dev" / "dev.json").exists()
        assert store.identities() == ["dev"]

    @pytest.mark.asyncio
    async def test_identities(self, base):
        store = LocalOutputStore(base)
        await store.publish_outputs("dev.b", {})
        await store.publish_outputs("dev.a", {})
        await store.publish_outputs("prod.a", {})
        assert store.identities() == ["dev.a", "dev.b", "prod.a"]

    @pytest.mark.asyncio
    async def test_corrupt_document(self, base):
        store = LocalOutputStore(base)
        (base / "dev").mkdir()
        (base / "dev" / "dev.build.json").write_text("{not json")
        with pytest.raises(StoreError):
            await store.fetch_outputs("dev.build")

    @pytest.mark.asyncio
    async def test_unserializable_outputs(self, base):
        store = LocalOutputStore(base)
        with pytest.raises(StoreError):
            await store.publish_outputs("dev.build", {"handle": object()})

    @pytest.mark.asyncio
    async def test_path_traversal_rejected(self, base):
        store = LocalOutputStore(base)
        with pytest.raises(SubstackError):
            await store.fetch_outputs("...etc")
        with pytest.raises(StoreError):
            await store.fetch_outputs("a/../../../etc")

    @pytest.mark.asyncio
    async def test_nested_plain_round_trip(self, base):
        store = LocalOutputStore(base)
        await store.publish_outputs("dev.a", {"cfg": {"port": Plain(8080)}})

        reader = LocalOutputStore(base)
        details = await reader.fetch_output_details("dev.a", "cfg")
        assert details.to_output() == Plain({"port": 8080})
