"""Settings for substack runs.

Manifesto:
    Which unit a process run represents is an environment concern: the
    deployment pipeline selects it by exporting ``SUBSTACK_STACK`` (or passing
    ``--stack``) before each run. Everything else a run needs, where outputs
    live, how long to wait on them, how to log, comes from the same place.

    - **Pydantic validation:** Type-checked at startup, not mid-run
    - **Environment-driven:** ``SUBSTACK_*`` env vars and ``.env`` files
    - **Extra ignore:** Unknown env vars don't cause startup failures

Examples:
    >>> from substack.core.settings import get_settings
    >>> settings = get_settings()
    >>> settings.identity.is_root
    True

Tags:
    settings, configuration, pydantic, environment, substack
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from substack.core.enums import RootFailurePolicy, StoreBackend
from substack.core.errors import InvalidStackIdentityError
from substack.core.identity import StackIdentity


class SubstackSettings(BaseSettings):
    """Settings for one process run.

    Fields
    ──────
    stack                  : Dotted stack identity of this run (``dev`` or ``dev.build``)
    pipeline               : Module (or ``module:function``) that registers the units
    store                  : Output store backend
    store_dir              : Base directory of the local output store
    fetch_timeout_seconds  : Upper bound for one output lookup (None waits forever)
    root_failure_policy    : Root-mode behaviour when a collection fails
    log_level              : Structlog log level
    log_json               : JSON logs (None = auto-detect from TTY)
    """

    model_config = SettingsConfigDict(
        env_prefix="SUBSTACK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Identity ─────────────────────────────────────────────────
    stack: str = "dev"
    pipeline: str = "substack.pipeline"

    # ── Output store ─────────────────────────────────────────────
    store: StoreBackend = StoreBackend.LOCAL
    store_dir: Path = Field(
        default_factory=lambda: Path.home() / ".substack" / "outputs",
        description="Base directory of the local output store",
    )
    fetch_timeout_seconds: float | None = Field(default=None, gt=0)

    # ── Dispatch ─────────────────────────────────────────────────
    root_failure_policy: RootFailurePolicy = RootFailurePolicy.PARTIAL

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool | None = None

    @field_validator("stack")
    @classmethod
    def _validate_stack(cls, value: str) -> str:
        try:
            StackIdentity.parse(value)
        except InvalidStackIdentityError as e:
            raise ValueError(e.message) from e
        return value.strip()

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        value = value.upper()
        if value not in {"DEBUG", "INFO", "WARNING", "ERROR"}:
            raise ValueError(f"unsupported log level: {value}")
        return value

    @property
    def identity(self) -> StackIdentity:
        return StackIdentity.parse(self.stack)


# ── Settings factory with caching ────────────────────────────────────────

_settings_cache: dict[str, SubstackSettings] = {}


def get_settings(*, _force_reload: bool = False) -> SubstackSettings:
    """Load, validate, and cache a :class:`SubstackSettings` instance."""
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]
    settings = SubstackSettings()
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()
