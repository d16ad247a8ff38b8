"""Tests for FileObserver against a real directory (uses watchdog)."""

import shutil

import pytest

from zzz_coordinator.domain.exceptions import ObserverError
from zzz_coordinator.domain.models import FileChangeKind
from zzz_coordinator.infrastructure.observer import FileObserver

WATCHED = ("todo-list.md", "review.md", "plan.md")

pytestmark = pytest.mark.slow


def _collect(subscription, timeout: float = 2.0) -> list:
    changes = []
    while True:
        change = subscription.next_event(timeout=timeout)
        if change is None:
            return changes
        changes.append(change)
        timeout = 0.8


@pytest.fixture
def task_dir(tmp_path):
    directory = tmp_path / "task-42"
    directory.mkdir()
    return directory


class TestFileObserver:
    def test_missing_directory_raises(self, tmp_path) -> None:
        observer = FileObserver(tmp_path / "absent", WATCHED)

        with pytest.raises(ObserverError):
            observer.subscribe()

    def test_existing_files_are_reported_first(self, task_dir) -> None:
        (task_dir / "todo-list.md").write_text("- [ ] a\n")
        (task_dir / "notes.txt").write_text("ignored")

        subscription = FileObserver(task_dir, WATCHED, debounce=0.1).subscribe()
        try:
            change = subscription.next_event(timeout=0.5)
        finally:
            subscription.close()

        assert change.filename == "todo-list.md"
        assert change.kind is FileChangeKind.MODIFIED

    def test_burst_of_writes_is_one_change(self, task_dir) -> None:
        subscription = FileObserver(task_dir, WATCHED, debounce=0.3).subscribe()
        try:
            path = task_dir / "todo-list.md"
            for i in range(5):
                with open(path, "a") as f:
                    f.write(f"- [ ] item {i}\n")
            changes = _collect(subscription)
        finally:
            subscription.close()

        assert [c.filename for c in changes] == ["todo-list.md"]

    def test_unwatched_files_are_ignored(self, task_dir) -> None:
        subscription = FileObserver(task_dir, WATCHED, debounce=0.1).subscribe()
        try:
            (task_dir / "scratch.md").write_text("x")
            (task_dir / "review.md").write_text("LGTM")
            changes = _collect(subscription)
        finally:
            subscription.close()

        assert {c.filename for c in changes} == {"review.md"}

    def test_removed_directory_raises(self, task_dir) -> None:
        subscription = FileObserver(task_dir, WATCHED, debounce=0.1).subscribe()
        try:
            shutil.rmtree(task_dir)
            with pytest.raises(ObserverError):
                _collect(subscription, timeout=3.0)
        finally:
            subscription.close()

        assert subscription.closed

    def test_close_ends_iteration(self, task_dir) -> None:
        subscription = FileObserver(task_dir, WATCHED, debounce=0.1).subscribe()
        subscription.close()
        subscription.close()

        assert list(subscription) == []
        assert subscription.next_event(timeout=0.1) is None
