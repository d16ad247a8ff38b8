"""
Persistence adapters for task artifacts.
"""

from zzz_coordinator.infrastructure.persistence.filesystem import AtomicFileStore
from zzz_coordinator.infrastructure.persistence.memory import InMemoryArtifactStore

__all__ = [
    "AtomicFileStore",
    "InMemoryArtifactStore",
]
