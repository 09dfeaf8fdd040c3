"""External tools driven by the example pipeline: docker and kubectl.

Both run their CLI via subprocess in a worker thread, so a unit awaiting a
build or a pod launch only suspends itself.

Architecture Decisions:
    - subprocess, not SDK clients: works with any docker / kubectl on PATH.
    - Protocols (``ImageBuilder``, ``PodLauncher``): units take any
      implementation, tests pass fakes.
"""

from __future__ import annotations

import asyncio
import json
import shutil
import subprocess
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from substack.core.logging import get_logger

logger = get_logger(__name__)


class ToolNotFoundError(RuntimeError):
    """Raised when a required CLI is not on PATH."""


class ImageBuildError(RuntimeError):
    """Raised when building, pushing or inspecting an image fails."""


class PodLaunchError(RuntimeError):
    """Raised when a pod can't be applied or inspected."""


def _find_tool(name: str) -> str:
    path = shutil.which(name)
    if path is None:
        raise ToolNotFoundError(f"{name} CLI not found on PATH. Install it or add it to PATH.")
    return path


@dataclass(frozen=True)
class RegistryAuth:
    """Where to push an image, as published by the provision unit."""

    server: str
    username: str = ""
    password: str = ""

    @classmethod
    def from_output(cls, output: dict[str, Any] | None) -> RegistryAuth:
        output = output or {}
        return cls(
            server=output.get("server", ""),
            username=output.get("username", ""),
            password=output.get("password", ""),
        )


@dataclass(frozen=True)
class ImageBuildRequest:
    image_name: str
    tag: str
    dockerfile: Path
    context: Path
    registry: RegistryAuth

    @property
    def reference(self) -> str:
        prefix = f"{self.registry.server}/" if self.registry.server else ""
        return f"{prefix}{self.image_name}:{self.tag}"


@dataclass(frozen=True)
class PodSpec:
    name: str
    container_name: str
    image: str
    namespace: str = "default"
    labels: dict[str, str] = field(default_factory=dict)

    def to_manifest(self) -> dict[str, Any]:
        return {
            "apiVersion": "v1",
            "kind": "Pod",
            "metadata": {
                "name": self.name,
                "namespace": self.namespace,
                "labels": {"app.kubernetes.io/managed-by": "substack", **self.labels},
            },
            "spec": {"containers": [{"name": self.container_name, "image": self.image}]},
        }


@dataclass(frozen=True)
class PodLaunch:
    name: str
    status: dict[str, Any]


class ImageBuilder(Protocol):
    async def build(self, request: ImageBuildRequest) -> str:
        """Build and push the image; return its repo digest."""
        ...


class PodLauncher(Protocol):
    async def launch(self, spec: PodSpec, kubeconfig: str) -> PodLaunch:
        """Create or update the pod; return its name and status."""
        ...


class DockerImageBuilder:
    """Builds and pushes images with the ``docker`` CLI."""

    def __init__(self, timeout: int = 1800) -> None:
        self.timeout = timeout
        self._docker_cmd = _find_tool("docker")

    def _run(self, args: list[str], input: str | None = None) -> subprocess.CompletedProcess[str]:
        result = subprocess.run(
            [self._docker_cmd, *args],
            input=input,
            capture_output=True,
            text=True,
            timeout=self.timeout,
        )
        if result.returncode != 0:
            raise ImageBuildError(f"docker {args[0]} failed: {result.stderr.strip()}")
        return result

    def _build_sync(self, request: ImageBuildRequest) -> str:
        registry = request.registry
        if registry.username:
            self._run(
                ["login", registry.server, "--username", registry.username, "--password-stdin"],
                input=registry.password,
            )
        self._run(["build", "--tag", request.reference, "--file", str(request.dockerfile), str(request.context)])
        self._run(["push", request.reference])
        inspected = self._run(["image", "inspect", "--format", "{{json .RepoDigests}}", request.reference])
        digests = json.loads(inspected.stdout or "[]")
        if not digests:
            raise ImageBuildError(f"No repo digest for {request.reference} after push")
        return digests[0]

    async def build(self, request: ImageBuildRequest) -> str:
        logger.info("image.build.start", image=request.reference)
        digest = await asyncio.to_thread(self._build_sync, request)
        logger.info("image.build.end", image=request.reference, digest=digest)
        return digest


class KubectlPodLauncher:
    """Applies pod manifests with the ``kubectl`` CLI."""

    def __init__(self, timeout: int = 300) -> None:
        self.timeout = timeout
        self._kubectl_cmd = _find_tool("kubectl")

    def _run(self, args: list[str], kubeconfig: Path | None, input: str | None = None) -> str:
        cmd = [self._kubectl_cmd]
        if kubeconfig is not None:
            cmd += ["--kubeconfig", str(kubeconfig)]
        result = subprocess.run(cmd + args, input=input, capture_output=True, text=True, timeout=self.timeout)
        if result.returncode != 0:
            raise PodLaunchError(f"kubectl {args[0]} failed: {result.stderr.strip()}")
        return result.stdout

    def _launch_sync(self, spec: PodSpec, kubeconfig: str) -> PodLaunch:
        with tempfile.TemporaryDirectory(prefix="substack-kube-") as tmp:
            config_path = None
            if kubeconfig:
                config_path = Path(tmp) / "config"
                config_path.write_text(kubeconfig, encoding="utf-8")
            self._run(["apply", "-f", "-"], config_path, input=json.dumps(spec.to_manifest()))
            raw = self._run(["get", "pod", spec.name, "--namespace", spec.namespace, "-o", "json"], config_path)
        pod = json.loads(raw)
        return PodLaunch(name=pod["metadata"]["name"], status=pod.get("status", {}))

    async def launch(self, spec: PodSpec, kubeconfig: str) -> PodLaunch:
        logger.info("pod.launch.start", pod=spec.name, image=spec.image)
        launched = await asyncio.to_thread(self._launch_sync, spec, kubeconfig)
        logger.info("pod.launch.end", pod=launched.name, phase=launched.status.get("phase"))
        return launched
