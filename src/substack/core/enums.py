"""
Shared enums for the substack framework.

STDLIB ONLY - NO PYDANTIC.
"""

from enum import Enum


class RunMode(str, Enum):
    """Dispatch branch taken by a process run."""

    ROOT = "root"  # No substack selected: aggregate published outputs
    UNIT = "unit"  # One substack selected: execute its compute


class RootFailurePolicy(str, Enum):
    """What root-mode aggregation does when a unit's outputs cannot be collected."""

    PARTIAL = "partial"  # Report the units that succeeded, log the rest
    ABORT = "abort"  # Raise RootAggregationError once every collection settled


class StoreBackend(str, Enum):
    """Remote output store implementation."""

    LOCAL = "local"  # JSON documents on disk
    MEMORY = "memory"  # In-process, lost at exit
