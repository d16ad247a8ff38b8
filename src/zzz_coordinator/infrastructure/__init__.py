"""
Infrastructure layer for the task coordinator.

Contains adapters for external concerns (file storage, file watching,
participant endpoints).
"""

from zzz_coordinator.infrastructure.channel import (
    InMemoryEndpoint,
    MessageChannel,
    StaticEndpointResolver,
)
from zzz_coordinator.infrastructure.observer import Debouncer, FileObserver
from zzz_coordinator.infrastructure.persistence import (
    AtomicFileStore,
    InMemoryArtifactStore,
)

__all__ = [
    # Persistence
    "AtomicFileStore",
    "InMemoryArtifactStore",
    # Observation
    "Debouncer",
    "FileObserver",
    # Channel
    "MessageChannel",
    "InMemoryEndpoint",
    "StaticEndpointResolver",
]
