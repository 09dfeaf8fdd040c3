"""Build unit: container image, skipped when the version didn't change.

The unit reads its *own* previous outputs. If the freshly computed version
equals the last published ``imageVersion`` and an ``imageDigest`` exists, it
republishes that digest instead of rebuilding.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TypedDict

from substack.core.logging import get_logger
from substack.framework.accessor import SubstackRef
from substack.framework.registry import UnitRegistry
from substack.pipeline.config import PipelineConfig
from substack.pipeline.provision import ProvisionOutputs
from substack.pipeline.tools import DockerImageBuilder, ImageBuilder, ImageBuildRequest, RegistryAuth

logger = get_logger(__name__)


class BuildOutputs(TypedDict):
    imageVersion: str
    imageDigest: str


def register_build(
    registry: UnitRegistry,
    config: PipelineConfig,
    provision: SubstackRef[ProvisionOutputs],
    *,
    builder: ImageBuilder | None = None,
    version: Callable[[], str] | None = None,
) -> SubstackRef[BuildOutputs]:
    def current_version() -> str:
        return version() if version is not None else config.image_version

    async def build() -> BuildOutputs:
        image_version = current_version()
        previous_version = await build_ref.get_output("imageVersion")
        previous_digest = await build_ref.get_output("imageDigest")
        if previous_digest and image_version == previous_version:
            logger.info("build.skipped", image_version=image_version, image_digest=previous_digest)
            return {"imageVersion": image_version, "imageDigest": previous_digest}

        registry_output = await provision.get_output("dockerRegistry")
        request = ImageBuildRequest(
            image_name=config.image_name,
            tag=image_version,
            dockerfile=config.dockerfile,
            context=config.build_context,
            registry=RegistryAuth.from_output(registry_output),
        )
        image_builder = builder or DockerImageBuilder()
        digest = await image_builder.build(request)
        return {"imageVersion": image_version, "imageDigest": digest}

    build_ref = registry.register(build, outputs=BuildOutputs)
    return build_ref
