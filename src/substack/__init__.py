"""
Substack - split one deployment pipeline into independently runnable units.

Subpackages:
- substack.core: identity, values, errors, result, logging, settings
- substack.store: remote output store backends (memory, local JSON)
- substack.framework: unit registry, reference cache, accessors, dispatcher
- substack.pipeline: example provision / build / deploy units
- substack.cli: ``substack`` command line
"""

__version__ = "0.1.0"

from substack.core.errors import (
    RemoteFetchError,
    RootAggregationError,
    SubstackError,
    UnitNotFoundError,
)
from substack.core.enums import RootFailurePolicy, RunMode
from substack.core.identity import StackIdentity
from substack.core.values import Plain, Secret, secret, unwrap
from substack.framework.accessor import SubstackRef
from substack.framework.app import SubstackApp
from substack.framework.dispatcher import RunDispatcher
from substack.framework.references import OutputHandle, ReferenceCache
from substack.framework.registry import DeferredUnit, UnitRegistry

__all__ = [
    "__version__",
    "StackIdentity",
    "Plain",
    "Secret",
    "secret",
    "unwrap",
    "SubstackError",
    "UnitNotFoundError",
    "RemoteFetchError",
    "RootAggregationError",
    "UnitRegistry",
    "DeferredUnit",
    "SubstackRef",
    "ReferenceCache",
    "OutputHandle",
    "RunDispatcher",
    "RunMode",
    "RootFailurePolicy",
    "SubstackApp",
]
