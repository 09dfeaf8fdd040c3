"""Deploy unit: one pod running the built image."""

from __future__ import annotations

from typing import Any, TypedDict

from substack.framework.accessor import SubstackRef
from substack.framework.registry import UnitRegistry
from substack.pipeline.build import BuildOutputs
from substack.pipeline.config import PipelineConfig
from substack.pipeline.provision import ProvisionOutputs
from substack.pipeline.tools import KubectlPodLauncher, PodLauncher, PodLaunchError, PodSpec


class DeployOutputs(TypedDict):
    podName: str
    podStatus: dict[str, Any]


def register_deploy(
    registry: UnitRegistry,
    config: PipelineConfig,
    provision: SubstackRef[ProvisionOutputs],
    build: SubstackRef[BuildOutputs],
    *,
    launcher: PodLauncher | None = None,
) -> SubstackRef[DeployOutputs]:
    async def deploy() -> DeployOutputs:
        k8s_provider = await provision.get_output("k8sProvider") or {}
        image = await build.get_output("imageDigest")
        if not image:
            raise PodLaunchError("build has not published an imageDigest yet; run the build substack first")
        spec = PodSpec(
            name=config.pod_name,
            container_name=config.container_name,
            image=image,
            namespace=config.namespace,
        )
        pod_launcher = launcher or KubectlPodLauncher()
        launched = await pod_launcher.launch(spec, k8s_provider.get("kubeconfig", ""))
        return {"podName": launched.name, "podStatus": launched.status}

    return registry.register(deploy, outputs=DeployOutputs)
