"""
Filesystem implementation of the artifact store.

Crash-safe writes via write-to-temp + fsync + rename in the same directory,
so readers only ever see a complete old or a complete new version.
"""

import errno
import os
import shutil
import tempfile
import threading
import time
from pathlib import Path

from zzz_coordinator.domain.exceptions import ParseError, StoreError, StoreErrorKind
from zzz_coordinator.domain.interfaces import ArtifactStoreInterface
from zzz_coordinator.domain.task import TaskLayout

DEFAULT_LOCK_TIMEOUT = 5.0

_ERRNO_KINDS = {
    errno.ENOENT: StoreErrorKind.NOT_FOUND,
    errno.EACCES: StoreErrorKind.PERMISSION_DENIED,
    errno.EPERM: StoreErrorKind.PERMISSION_DENIED,
    errno.EROFS: StoreErrorKind.PERMISSION_DENIED,
    errno.ENOSPC: StoreErrorKind.DISK_FULL,
    errno.EDQUOT: StoreErrorKind.DISK_FULL,
    errno.ENOTDIR: StoreErrorKind.NOT_A_DIRECTORY,
}


def _store_error(error: OSError, path: Path) -> StoreError:
    """Classify an OSError into the store's error kinds."""
    kind = _ERRNO_KINDS.get(error.errno or 0, StoreErrorKind.IO)
    return StoreError(kind, str(path), error.strerror or str(error))


class AtomicFileStore(ArtifactStoreInterface):
    """
    Durable artifact store on the local filesystem.

    Writes to the same path are serialized within the process by a per-path
    lock. Cross-process writers are not locked out, but the rename strategy
    still guarantees readers never see a torn write.
    """

    def __init__(
        self,
        base_directory: str | Path,
        lock_timeout: float = DEFAULT_LOCK_TIMEOUT,
    ):
        """
        Args:
            base_directory: Root holding the task directories (e.g. ``.zzz``)
            lock_timeout: Default max seconds to wait for a path's write lock
        """
        self._base_directory = Path(base_directory)
        self._lock_timeout = lock_timeout
        self._locks: dict[Path, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @property
    def base_directory(self) -> Path:
        return self._base_directory

    def layout(self, task_id: str) -> TaskLayout:
        return TaskLayout(base_directory=self._base_directory, task_id=str(task_id))

    def ensure_directory(self, task_id: str) -> TaskLayout:
        """
        Create the task directory, its logs/ subdirectory and the log files.

        Args:
            task_id: Task identifier

        Returns:
            The task's layout
        """
        layout = self.layout(task_id)
        self._make_dirs(layout.logs_dir)
        for log_file in layout.log_files:
            self.ensure_file(log_file)
        return layout

    def archive(self, task_id: str) -> Path:
        layout = self.layout(task_id)
        destination = layout.archive_dir
        if destination.exists():
            # A task id may be reused after an earlier run was archived
            suffix = int(time.time())
            destination = destination.with_name(f"{destination.name}-{suffix}")
        self._make_dirs(destination.parent)
        try:
            shutil.move(str(layout.task_dir), str(destination))
        except OSError as e:
            raise _store_error(e, layout.task_dir) from e
        return destination

    def _make_dirs(self, path: Path) -> Path:
        try:
            path.mkdir(parents=True, exist_ok=True)
        except FileExistsError as e:
            # A regular file sits where the directory should be
            raise StoreError(StoreErrorKind.NOT_A_DIRECTORY, str(path), str(e)) from e
        except OSError as e:
            raise _store_error(e, path) from e
        return path

    def ensure_file(self, path: Path) -> None:
        """Create an empty file unless one already exists."""
        if not self.exists(path):
            self.write(path, "")

    def exists(self, path: Path) -> bool:
        return path.is_file()

    def _lock_for(self, path: Path) -> threading.Lock:
        key = path.absolute()
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    def write(self, path: Path, content: str, timeout: float | None = None) -> None:
        """
        Atomically replace ``path`` with ``content``.

        The temporary file lives in the same directory so the final
        ``os.replace`` never crosses a filesystem boundary.
        """
        path = Path(path)
        lock = self._lock_for(path)
        wait = self._lock_timeout if timeout is None else timeout
        if not lock.acquire(timeout=wait):
            raise StoreError(
                StoreErrorKind.TIMEOUT, str(path), f"write lock not acquired in {wait}s"
            )
        try:
            self._write_replace(path, content)
        finally:
            lock.release()

    def _write_replace(self, path: Path, content: str) -> None:
        temp_name: str | None = None
        try:
            fd, temp_name = tempfile.mkstemp(
                prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
            )
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_name, path)
            temp_name = None
        except OSError as e:
            raise _store_error(e, path) from e
        finally:
            if temp_name is not None and os.path.exists(temp_name):
                os.unlink(temp_name)

    def read(self, path: Path) -> str:
        path = Path(path)
        try:
            with open(path, encoding="utf-8", newline="") as f:
                return f.read()
        except UnicodeDecodeError as e:
            raise ParseError(f"{path} is not valid UTF-8: {e}") from e
        except IsADirectoryError as e:
            raise StoreError(StoreErrorKind.IO, str(path), str(e)) from e
        except OSError as e:
            raise _store_error(e, path) from e

    def append(self, path: Path, content: str) -> None:
        path = Path(path)
        lock = self._lock_for(path)
        if not lock.acquire(timeout=self._lock_timeout):
            raise StoreError(
                StoreErrorKind.TIMEOUT, str(path), "append lock not acquired"
            )
        try:
            with open(path, "a", encoding="utf-8") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
        except OSError as e:
            raise _store_error(e, path) from e
        finally:
            lock.release()
