"""
File system observer for a task directory.

Uses the watchdog library to receive raw events, filters them down to the
files of interest and debounces bursts into one change per logical save.
Consumers pull changes from a subscription; nothing is pushed to them.
"""

import logging
import os
import queue
import time
from collections import deque
from collections.abc import Iterable
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from zzz_coordinator.domain.exceptions import ObserverError
from zzz_coordinator.domain.interfaces import (
    ChangeSubscriptionInterface,
    FileObserverInterface,
)
from zzz_coordinator.domain.models import FileChange, FileChangeKind
from zzz_coordinator.infrastructure.observer.debounce import (
    DEFAULT_DEBOUNCE_SECONDS,
    Debouncer,
)

logger = logging.getLogger(__name__)

# Upper bound on a blocking wait so a vanished directory is noticed
_LIVENESS_INTERVAL = 1.0


class _DirectoryGone:
    """Marker queued when the watched directory itself is removed."""


class _FilteredEventHandler(FileSystemEventHandler):
    """
    Watchdog handler that forwards raw events for watched files only.

    Runs on the watchdog thread; it only enqueues.
    """

    def __init__(
        self, directory: Path, filenames: frozenset[str], sink: queue.Queue
    ):
        super().__init__()
        self._directory = directory
        self._filenames = filenames
        self._sink = sink

    def _forward(self, path: str | bytes, kind: FileChangeKind) -> None:
        name = Path(os.fsdecode(path))
        if name.parent != self._directory or name.name not in self._filenames:
            return
        change = FileChange(kind=kind, filename=name.name, observed_at=time.time())
        self._sink.put(change)
        logger.debug("Raw %s event for %s", kind.value, name.name)

    def on_created(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        self._forward(event.src_path, FileChangeKind.CREATED)

    def on_modified(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        self._forward(event.src_path, FileChangeKind.MODIFIED)

    def on_deleted(self, event: FileSystemEvent) -> None:
        if Path(os.fsdecode(event.src_path)) == self._directory:
            self._sink.put(_DirectoryGone())
            return
        if event.is_directory:
            return
        self._forward(event.src_path, FileChangeKind.REMOVED)

    def on_moved(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        # Atomic replace-by-rename shows up as a move onto the watched name
        self._forward(event.src_path, FileChangeKind.REMOVED)
        self._forward(event.dest_path, FileChangeKind.MODIFIED)


class ObserverSubscription(ChangeSubscriptionInterface):
    """
    One lazy, unbounded stream of debounced changes.

    Starts with a synthetic ``MODIFIED`` change for every watched file that
    already exists, so content written while nobody was watching is not
    missed. Closing and subscribing again restarts the stream.
    """

    def __init__(self, directory: Path, filenames: frozenset[str], debounce: float):
        self._directory = directory
        self._filenames = filenames
        self._debouncer = Debouncer(debounce)
        self._raw: queue.Queue = queue.Queue()
        self._ready: deque[FileChange] = deque()
        self._closed = False
        self._observer = Observer()

        if not directory.is_dir():
            raise ObserverError(f"Cannot watch {directory}: not a directory")
        handler = _FilteredEventHandler(directory, filenames, self._raw)
        try:
            self._observer.schedule(handler, str(directory), recursive=False)
            self._observer.start()
        except OSError as e:
            raise ObserverError(f"Cannot watch {directory}: {e}") from e

        now = time.time()
        for name in sorted(filenames):
            if (directory / name).is_file():
                self._ready.append(FileChange(FileChangeKind.MODIFIED, name, now))
        logger.info(
            "Watching %s for %s (%d existing)",
            directory,
            ", ".join(sorted(filenames)),
            len(self._ready),
        )

    @property
    def closed(self) -> bool:
        return self._closed

    def __next__(self) -> FileChange:
        while not self._closed:
            change = self.next_event(timeout=_LIVENESS_INTERVAL)
            if change is not None:
                return change
        raise StopIteration

    def next_event(self, timeout: float | None = None) -> FileChange | None:
        """
        Pull the next debounced change.

        Args:
            timeout: Max seconds to wait; None waits until a change arrives

        Returns:
            The change, or None if the timeout elapsed or the subscription
            was closed

        Raises:
            ObserverError: If the watched directory disappeared
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while not self._closed:
            if self._ready:
                return self._ready.popleft()

            wait = _LIVENESS_INTERVAL
            debounce_deadline = self._debouncer.next_deadline()
            if debounce_deadline is not None:
                wait = min(wait, max(debounce_deadline - time.time(), 0.0))
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0 and not self._ready:
                    self._release(time.time())
                    return self._ready.popleft() if self._ready else None
                wait = min(wait, max(remaining, 0.0))

            try:
                raw = self._raw.get(timeout=wait)
            except queue.Empty:
                raw = None
            if self._closed:
                break
            self._accept(raw)
            while True:
                try:
                    self._accept(self._raw.get_nowait())
                except queue.Empty:
                    break
            self._release(time.time())
        return None

    def _accept(self, raw: FileChange | _DirectoryGone | None) -> None:
        if isinstance(raw, _DirectoryGone) or not self._directory.is_dir():
            self.close()
            raise ObserverError(f"Watched directory {self._directory} was removed")
        if raw is not None:
            self._debouncer.push(raw)

    def _release(self, now: float) -> None:
        self._ready.extend(self._debouncer.flush(now))

    def close(self) -> None:
        """Stop watching. Idempotent."""
        if self._closed:
            return
        self._closed = True
        self._observer.stop()
        self._observer.join(timeout=_LIVENESS_INTERVAL)
        logger.debug("Stopped watching %s", self._directory)


class FileObserver(FileObserverInterface):
    """Watches a set of filenames inside one directory."""

    def __init__(
        self,
        directory: str | Path,
        filenames: Iterable[str],
        debounce: float = DEFAULT_DEBOUNCE_SECONDS,
    ):
        """
        Args:
            directory: Directory holding the watched files
            filenames: Basenames of interest; other files are ignored
            debounce: Quiet window in seconds before a burst is released
        """
        self._directory = Path(directory).absolute()
        self._filenames = frozenset(filenames)
        self._debounce = debounce

    @property
    def directory(self) -> Path:
        return self._directory

    def subscribe(self) -> ObserverSubscription:
        """
        Start a fresh subscription.

        Raises:
            ObserverError: If the directory cannot be watched
        """
        return ObserverSubscription(self._directory, self._filenames, self._debounce)
