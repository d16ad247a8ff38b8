"""
Debouncing of raw file events into logical changes.

Editors and agents often perform several small writes per logical save.
The debouncer groups raw events per file and releases one change once the
file has been quiet for the debounce window.
"""

from dataclasses import dataclass

from zzz_coordinator.domain.models import FileChange, FileChangeKind

DEFAULT_DEBOUNCE_SECONDS = 0.3


@dataclass
class _Burst:
    """Raw events seen for one file since its last release."""

    first: FileChange
    last: FileChange
    count: int = 1

    def collapse(self) -> FileChange:
        if self.count == 1:
            return self.first
        if self.last.kind is FileChangeKind.REMOVED:
            kind = FileChangeKind.REMOVED
        else:
            kind = FileChangeKind.MODIFIED
        return FileChange(
            kind=kind, filename=self.last.filename, observed_at=self.last.observed_at
        )


class Debouncer:
    """
    Per-file burst collapsing with a fixed quiet window.

    Pure and clock-free: callers pass the current time to ``flush``, which
    keeps the collapsing rules testable without sleeping.
    """

    def __init__(self, window: float = DEFAULT_DEBOUNCE_SECONDS):
        if window < 0:
            raise ValueError(f"Debounce window must be >= 0, got {window}")
        self._window = window
        self._bursts: dict[str, _Burst] = {}

    @property
    def window(self) -> float:
        return self._window

    def __len__(self) -> int:
        return len(self._bursts)

    def push(self, change: FileChange) -> None:
        """Record one raw event."""
        burst = self._bursts.get(change.filename)
        if burst is None:
            self._bursts[change.filename] = _Burst(first=change, last=change)
            return
        burst.last = change
        burst.count += 1

    def next_deadline(self) -> float | None:
        """Earliest time at which ``flush`` will release a change."""
        if not self._bursts:
            return None
        return min(b.last.observed_at for b in self._bursts.values()) + self._window

    def flush(self, now: float) -> list[FileChange]:
        """
        Release the changes of files quiet for at least the window.

        Returns:
            Collapsed changes ordered by their latest raw timestamp
        """
        ready = [
            name
            for name, burst in self._bursts.items()
            if now - burst.last.observed_at >= self._window
        ]
        released = [self._bursts.pop(name).collapse() for name in ready]
        return sorted(released, key=lambda c: c.observed_at)
