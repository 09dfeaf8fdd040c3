"""
Shared pytest fixtures for substack tests.

This module provides:
- An in-memory output store and a reference cache / registry bound to it
- A ``SubstackApp`` factory for root and unit runs
- Settings / logging cleanup for test isolation
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
import structlog

from substack.core.logging import clear_context
from substack.core.settings import clear_settings_cache
from substack.framework.app import SubstackApp
from substack.framework.references import ReferenceCache
from substack.framework.registry import UnitRegistry
from substack.store import LocalOutputStore, MemoryOutputStore


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Generator[None, None, None]:
    """Keep SUBSTACK_* env vars and stray ``.env`` files out of every test."""
    for name in list(os.environ):
        if name.startswith("SUBSTACK_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Undo ``configure_logging`` calls made by a test."""
    yield
    clear_context()
    structlog.reset_defaults()
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)


# =============================================================================
# Store / framework fixtures
# =============================================================================


@pytest.fixture
def store() -> MemoryOutputStore:
    return MemoryOutputStore()


@pytest.fixture
def local_store(tmp_path: Path) -> LocalOutputStore:
    return LocalOutputStore(tmp_path / "outputs")


@pytest.fixture
def references(store: MemoryOutputStore) -> ReferenceCache:
    return ReferenceCache("dev", store)


@pytest.fixture
def registry(references: ReferenceCache) -> UnitRegistry:
    return UnitRegistry(references)


@pytest.fixture
def make_app(store: MemoryOutputStore) -> Callable[..., SubstackApp]:
    """
    Build a SubstackApp on the shared memory store.

        app = make_app("dev.build")
        app = make_app("dev", failure_policy=RootFailurePolicy.ABORT)
    """

    def _make(identity: str = "dev", **kwargs) -> SubstackApp:
        return SubstackApp(identity, kwargs.pop("store", store), **kwargs)

    return _make
