"""
File observation: watchdog-backed watching with debounced changes.
"""

from zzz_coordinator.infrastructure.observer.debounce import (
    DEFAULT_DEBOUNCE_SECONDS,
    Debouncer,
)
from zzz_coordinator.infrastructure.observer.watcher import (
    FileObserver,
    ObserverSubscription,
)

__all__ = [
    "DEFAULT_DEBOUNCE_SECONDS",
    "Debouncer",
    "FileObserver",
    "ObserverSubscription",
]
