"""
Substack Framework - orchestration of independently runnable units.

This module provides:
- Unit registry (register / substack decorator)
- Reference cache and output handles
- Typed output accessors
- Run dispatcher (root aggregation vs unit execution)
- Application wiring and entry point
"""

from substack.framework.accessor import SubstackRef
from substack.framework.app import SubstackApp, load_pipeline
from substack.framework.dispatcher import RootAggregate, RunDispatcher
from substack.framework.references import OutputHandle, ReferenceCache
from substack.framework.registry import DeferredUnit, UnitRegistry

__all__ = [
    # Registry
    "UnitRegistry",
    "DeferredUnit",
    # References
    "ReferenceCache",
    "OutputHandle",
    # Accessor
    "SubstackRef",
    # Dispatch
    "RunDispatcher",
    "RootAggregate",
    # App
    "SubstackApp",
    "load_pipeline",
]
