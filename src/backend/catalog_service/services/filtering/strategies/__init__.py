"""
Filtering Strategy Package

Contains the in-memory and remote filtering engines.
"""

from .base import FilteringStrategy
from .client_side import EngineState, InMemoryFilteringStrategy
from .server_side import RemoteFilteringStrategy

__all__ = [
    "FilteringStrategy",
    "EngineState",
    "InMemoryFilteringStrategy",
    "RemoteFilteringStrategy",
]
