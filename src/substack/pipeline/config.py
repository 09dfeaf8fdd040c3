"""Configuration for the example provision / build / deploy pipeline.

Every field can be overridden with a ``SUBSTACK_PIPELINE_*`` environment
variable, e.g. ``SUBSTACK_PIPELINE_REGISTRY_SERVER=registry.example.com``.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class PipelineConfig(BaseSettings):
    """Inputs of the example pipeline's units."""

    model_config = SettingsConfigDict(
        env_prefix="SUBSTACK_PIPELINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── provision ────────────────────────────────────────────────
    kubeconfig: str = Field(default="", description="Kubeconfig contents handed to deploy")
    registry_server: str = "localhost:5000"
    registry_username: str = ""
    registry_password: SecretStr = SecretStr("")

    # ── build ────────────────────────────────────────────────────
    image_name: str = "some-image"
    image_version: str = "1.0.0"
    dockerfile: Path = Field(default_factory=lambda: Path.cwd() / "Dockerfile")
    build_context: Path = Field(default_factory=Path.cwd)

    # ── deploy ───────────────────────────────────────────────────
    pod_name: str = "some-pod"
    container_name: str = "some-container"
    namespace: str = "default"
