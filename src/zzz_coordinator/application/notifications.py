"""Notification queue: outcomes awaiting operator attention."""

import logging
import threading
from collections import deque
from datetime import datetime, timezone

from zzz_coordinator.domain.models import (
    ErrorKind,
    Notification,
    NotificationKind,
    WorkflowPhase,
)

logger = logging.getLogger(__name__)

# Oldest notifications are dropped beyond this many undrained entries
DEFAULT_MAX_PENDING = 1000


class NotificationQueue:
    """
    Bounded FIFO of notifications, each consumed exactly once.

    Pushing also logs the notification, at warning level when it carries an
    error kind. When the queue is full the oldest entry is dropped; it has
    already been logged, and the drop itself is logged at debug level.
    """

    def __init__(self, max_pending: int = DEFAULT_MAX_PENDING) -> None:
        if max_pending < 1:
            raise ValueError(f"max_pending must be >= 1, got {max_pending}")
        self._items: deque[Notification] = deque(maxlen=max_pending)
        self._lock = threading.Lock()
        self._dropped = 0

    @property
    def max_pending(self) -> int:
        return self._items.maxlen or 0

    @property
    def dropped(self) -> int:
        """Notifications discarded since the queue was created."""
        with self._lock:
            return self._dropped

    def push(
        self,
        kind: NotificationKind,
        message: str,
        phase: WorkflowPhase,
        error_kind: ErrorKind | None = None,
    ) -> Notification:
        notification = Notification(
            kind=kind,
            message=message,
            phase=phase,
            created_at=datetime.now(timezone.utc).isoformat(),
            error_kind=error_kind,
        )
        evicted: Notification | None = None
        with self._lock:
            if len(self._items) == self._items.maxlen:
                evicted = self._items[0]
                self._dropped += 1
            self._items.append(notification)
        if error_kind is None:
            logger.info("[%s] %s", kind.value, message)
        else:
            logger.warning(
                "[%s] %s (error_kind=%s)", kind.value, message, error_kind.value
            )
        if evicted is not None:
            logger.debug(
                "Notification queue full, dropped [%s] %s",
                evicted.kind.value,
                evicted.message,
            )
        return notification

    def pop(self) -> Notification | None:
        with self._lock:
            return self._items.popleft() if self._items else None

    def drain(self) -> list[Notification]:
        with self._lock:
            items = list(self._items)
            self._items.clear()
        return items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
