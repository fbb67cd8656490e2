"""Resolve engines — bindings to the dependency resolver.

Public re-exports for convenient access.
"""

from ivytrigger.adapters.base import EngineFactory, ResolveEngine, ResolveOptions
from ivytrigger.adapters.mock import MockResolveEngine

__all__ = [
    "EngineFactory",
    "MockResolveEngine",
    "ResolveEngine",
    "ResolveOptions",
]
