"""
Task identity and on-disk layout.

The layout is relied upon by the launcher and the viewer panes, so the
names below must not change:

    {base}/task-{task_id}/
        todo-list.md
        review.md
        plan.md
        phase.json
        logs/
            overseer.log
            commander.log
            coordinator.log
"""

from dataclasses import dataclass
from pathlib import Path

TODO_LIST_FILENAME = "todo-list.md"
REVIEW_FILENAME = "review.md"
PLAN_FILENAME = "plan.md"
PHASE_RECORD_FILENAME = "phase.json"
LOGS_DIRNAME = "logs"
ARCHIVE_DIRNAME = "archive"

OVERSEER_LOG_FILENAME = "overseer.log"
COMMANDER_LOG_FILENAME = "commander.log"
COORDINATOR_LOG_FILENAME = "coordinator.log"


@dataclass(frozen=True)
class Task:
    """One coordinated unit of work."""

    task_id: str
    description: str


@dataclass(frozen=True)
class TaskLayout:
    """Paths of a task's directory subtree."""

    base_directory: Path
    task_id: str

    @property
    def task_dir(self) -> Path:
        return self.base_directory / f"task-{self.task_id}"

    @property
    def todo_list(self) -> Path:
        return self.task_dir / TODO_LIST_FILENAME

    @property
    def review(self) -> Path:
        return self.task_dir / REVIEW_FILENAME

    @property
    def plan(self) -> Path:
        return self.task_dir / PLAN_FILENAME

    @property
    def phase_record(self) -> Path:
        return self.task_dir / PHASE_RECORD_FILENAME

    @property
    def logs_dir(self) -> Path:
        return self.task_dir / LOGS_DIRNAME

    @property
    def overseer_log(self) -> Path:
        return self.logs_dir / OVERSEER_LOG_FILENAME

    @property
    def commander_log(self) -> Path:
        return self.logs_dir / COMMANDER_LOG_FILENAME

    @property
    def coordinator_log(self) -> Path:
        return self.logs_dir / COORDINATOR_LOG_FILENAME

    @property
    def log_files(self) -> tuple[Path, ...]:
        return (self.overseer_log, self.commander_log, self.coordinator_log)

    @property
    def archive_dir(self) -> Path:
        return self.base_directory / ARCHIVE_DIRNAME / f"task-{self.task_id}"

    @property
    def watched_filenames(self) -> frozenset[str]:
        return frozenset({TODO_LIST_FILENAME, REVIEW_FILENAME, PLAN_FILENAME})
