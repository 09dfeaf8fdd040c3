"""Remote output store backends."""

from __future__ import annotations

from typing import TYPE_CHECKING

from substack.core.enums import StoreBackend
from substack.store.base import OutputStore
from substack.store.local import LocalOutputStore
from substack.store.memory import MemoryOutputStore

if TYPE_CHECKING:
    from substack.core.settings import SubstackSettings


def create_store(settings: SubstackSettings) -> OutputStore:
    """Build the output store selected by ``settings.store``."""
    if settings.store == StoreBackend.MEMORY:
        return MemoryOutputStore()
    return LocalOutputStore(settings.store_dir)


__all__ = [
    "OutputStore",
    "LocalOutputStore",
    "MemoryOutputStore",
    "create_store",
]
