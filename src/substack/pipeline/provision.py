"""Provision unit: cluster access and the image registry.

Runs rarely; build and deploy read its outputs from the store.
"""

from __future__ import annotations

from typing import Any, TypedDict

from substack.core.values import secret
from substack.framework.accessor import SubstackRef
from substack.framework.registry import UnitRegistry
from substack.pipeline.config import PipelineConfig


class ProvisionOutputs(TypedDict):
    k8sProvider: dict[str, Any]
    dockerRegistry: dict[str, Any]


def register_provision(registry: UnitRegistry, config: PipelineConfig) -> SubstackRef[ProvisionOutputs]:
    async def provision() -> ProvisionOutputs:
        return {
            "k8sProvider": {"kubeconfig": config.kubeconfig},
            "dockerRegistry": {
                "server": config.registry_server,
                "username": config.registry_username,
                "password": secret(config.registry_password.get_secret_value()),
            },
        }

    return registry.register(provision, outputs=ProvisionOutputs)
