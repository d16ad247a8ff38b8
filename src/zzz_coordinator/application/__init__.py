"""
Application layer for the task coordinator.

Contains the coordination loop and the services it drives.
"""

from zzz_coordinator.application.coordinator import (
    Coordinator,
    CoordinatorContext,
    build_guards,
)
from zzz_coordinator.application.event_queue import EventQueue
from zzz_coordinator.application.notifications import NotificationQueue
from zzz_coordinator.application.phase_records import PhaseRecordRepository

__all__ = [
    "Coordinator",
    "CoordinatorContext",
    "EventQueue",
    "NotificationQueue",
    "PhaseRecordRepository",
    "build_guards",
]
