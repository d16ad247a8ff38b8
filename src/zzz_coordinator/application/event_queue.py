"""
Ordered event queue for the coordination loop.

Producers on other threads (the observer pump, the inbound reader) call
``put``; the loop is the only consumer. Retries are scheduled as delayed
events and released into arrival order once due, so the loop never sleeps
to back off.
"""

import heapq
import itertools
import queue
import threading
import time

from zzz_coordinator.domain.events import WorkflowEvent


class EventQueue:
    """FIFO queue plus a heap of events scheduled for later."""

    def __init__(self) -> None:
        self._ready: queue.Queue[WorkflowEvent] = queue.Queue()
        self._scheduled: list[tuple[float, int, WorkflowEvent]] = []
        self._sequence = itertools.count()
        self._lock = threading.Lock()

    def put(self, event: WorkflowEvent) -> None:
        """Enqueue ``event`` behind everything already queued."""
        self._ready.put(event)

    def schedule(self, event: WorkflowEvent, delay: float) -> None:
        """Enqueue ``event`` once ``delay`` seconds have passed."""
        due = time.monotonic() + max(delay, 0.0)
        with self._lock:
            heapq.heappush(self._scheduled, (due, next(self._sequence), event))

    @property
    def scheduled_count(self) -> int:
        with self._lock:
            return len(self._scheduled)

    def empty(self) -> bool:
        """True if nothing is ready and nothing is scheduled."""
        return self._ready.empty() and self.scheduled_count == 0

    def _release_due(self, now: float) -> float | None:
        """Move due events to the ready queue; return the next due time."""
        with self._lock:
            while self._scheduled and self._scheduled[0][0] <= now:
                _, _, event = heapq.heappop(self._scheduled)
                self._ready.put(event)
            return self._scheduled[0][0] if self._scheduled else None

    def get(self, timeout: float | None = None) -> WorkflowEvent | None:
        """
        Take the next event.

        Args:
            timeout: Max seconds to wait; None blocks until an event arrives

        Returns:
            The event, or None if the timeout elapsed
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            now = time.monotonic()
            next_due = self._release_due(now)
            wait = None if next_due is None else max(next_due - now, 0.0)
            if deadline is not None:
                remaining = max(deadline - now, 0.0)
                wait = remaining if wait is None else min(wait, remaining)
            try:
                if wait == 0.0:
                    return self._ready.get_nowait()
                return self._ready.get(timeout=wait)
            except queue.Empty:
                if deadline is not None and time.monotonic() >= deadline:
                    self._release_due(time.monotonic())
                    try:
                        return self._ready.get_nowait()
                    except queue.Empty:
                        return None
