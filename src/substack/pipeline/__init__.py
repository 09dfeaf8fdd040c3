"""
Example pipeline: provision -> build -> deploy.

Each unit runs in its own process (``SUBSTACK_STACK=dev.provision``,
``dev.build``, ``dev.deploy``) and reads what the earlier ones published.
``SUBSTACK_STACK=dev`` aggregates all three.

Usage::

    substack run --stack dev.provision
    substack run --stack dev.build
    substack run --stack dev.deploy
    substack run --stack dev
"""

from __future__ import annotations

from dataclasses import dataclass

from substack.framework.accessor import SubstackRef
from substack.framework.registry import UnitRegistry
from substack.pipeline.build import BuildOutputs, register_build
from substack.pipeline.config import PipelineConfig
from substack.pipeline.deploy import DeployOutputs, register_deploy
from substack.pipeline.provision import ProvisionOutputs, register_provision
from substack.pipeline.tools import ImageBuilder, PodLauncher


@dataclass(frozen=True)
class Pipeline:
    """Accessors of the registered units."""

    provision: SubstackRef[ProvisionOutputs]
    build: SubstackRef[BuildOutputs]
    deploy: SubstackRef[DeployOutputs]


def register_substacks(
    registry: UnitRegistry,
    config: PipelineConfig | None = None,
    *,
    builder: ImageBuilder | None = None,
    launcher: PodLauncher | None = None,
) -> Pipeline:
    """Register provision, build and deploy, in that order."""
    config = config or PipelineConfig()
    provision = register_provision(registry, config)
    build = register_build(registry, config, provision, builder=builder)
    deploy = register_deploy(registry, config, provision, build, launcher=launcher)
    return Pipeline(provision=provision, build=build, deploy=deploy)


__all__ = [
    "Pipeline",
    "PipelineConfig",
    "register_substacks",
    "ProvisionOutputs",
    "BuildOutputs",
    "DeployOutputs",
]
