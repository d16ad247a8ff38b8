"""
In-memory implementation of the artifact store.

Useful for testing and ephemeral workflows.
"""

import threading
from pathlib import Path

from zzz_coordinator.domain.exceptions import StoreError, StoreErrorKind
from zzz_coordinator.domain.interfaces import ArtifactStoreInterface
from zzz_coordinator.domain.task import TaskLayout


class InMemoryArtifactStore(ArtifactStoreInterface):
    """Simple dict-backed store for testing."""

    def __init__(self, base_directory: str | Path = ".zzz") -> None:
        self._base_directory = Path(base_directory)
        self._files: dict[Path, str] = {}
        self._directories: set[Path] = set()
        self._lock = threading.Lock()
        # Paths whose next write fails, mapped to the failure kind
        self._failures: dict[Path, StoreErrorKind] = {}

    @property
    def base_directory(self) -> Path:
        return self._base_directory

    def fail_next_write(self, path: Path, kind: StoreErrorKind) -> None:
        """Make the next write to ``path`` raise ``StoreError(kind)``."""
        self._failures[Path(path)] = kind

    def write(self, path: Path, content: str, timeout: float | None = None) -> None:
        path = Path(path)
        with self._lock:
            kind = self._failures.pop(path, None)
            if kind is not None:
                raise StoreError(kind, str(path), "simulated failure")
            self._files[path] = content

    def read(self, path: Path) -> str:
        path = Path(path)
        with self._lock:
            if path not in self._files:
                raise StoreError(StoreErrorKind.NOT_FOUND, str(path))
            return self._files[path]

    def append(self, path: Path, content: str) -> None:
        path = Path(path)
        with self._lock:
            self._files[path] = self._files.get(path, "") + content

    def exists(self, path: Path) -> bool:
        return Path(path) in self._files

    def remove(self, path: Path) -> None:
        with self._lock:
            self._files.pop(Path(path), None)

    def ensure_directory(self, task_id: str) -> TaskLayout:
        layout = TaskLayout(base_directory=self._base_directory, task_id=str(task_id))
        with self._lock:
            self._directories.update({layout.task_dir, layout.logs_dir})
            for log_file in layout.log_files:
                self._files.setdefault(log_file, "")
        return layout

    def archive(self, task_id: str) -> Path:
        layout = TaskLayout(base_directory=self._base_directory, task_id=str(task_id))
        source, destination = layout.task_dir, layout.archive_dir
        with self._lock:
            moved = {
                destination / path.relative_to(source): content
                for path, content in self._files.items()
                if path.is_relative_to(source)
            }
            self._files = {
                path: content
                for path, content in self._files.items()
                if not path.is_relative_to(source)
            }
            self._files.update(moved)
            self._directories = {
                d for d in self._directories if not d.is_relative_to(source)
            }
            self._directories.add(destination)
        return destination

    def directory_exists(self, path: Path) -> bool:
        return Path(path) in self._directories
