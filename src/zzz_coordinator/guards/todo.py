"""
Todo-list guards.

The plan is ready once the todo list has at least one checklist item; the
implementation is complete once every item is checked. A list with zero
items is never complete, so a truncated file cannot advance the workflow.
"""

from pathlib import Path

from zzz_coordinator.domain.checklist import parse_todo_list
from zzz_coordinator.domain.interfaces import ArtifactStoreInterface, GuardInterface
from zzz_coordinator.domain.models import GuardResult, TodoProgress
from zzz_coordinator.guards.base import read_artifact


class _TodoListGuard(GuardInterface):
    name = "todo_list"

    def __init__(self, todo_path: Path):
        """
        Args:
            todo_path: Path of the todo-list artifact
        """
        self.todo_path = todo_path

    def progress(self, store: ArtifactStoreInterface) -> TodoProgress | None:
        content = read_artifact(store, self.todo_path, self.name)
        if content is None:
            return None
        return parse_todo_list(content)


class PlanReadyGuard(_TodoListGuard):
    """Passes when the todo list parses as a non-empty checklist."""

    name = "plan_ready"

    def validate(self, store: ArtifactStoreInterface) -> GuardResult:
        progress = self.progress(store)
        if progress is None:
            return GuardResult(passed=False, feedback="Todo list not readable yet")
        if not progress.is_ready:
            return GuardResult(
                passed=False, feedback="Todo list has no checklist items"
            )
        return GuardResult(passed=True, feedback=f"{progress.total} items planned")


class ImplementationCompleteGuard(_TodoListGuard):
    """Passes when every checklist item is checked."""

    name = "implementation_complete"

    def validate(self, store: ArtifactStoreInterface) -> GuardResult:
        progress = self.progress(store)
        if progress is None:
            return GuardResult(passed=False, feedback="Todo list not readable yet")
        feedback = f"{progress.completed}/{progress.total} items complete"
        return GuardResult(passed=progress.is_complete, feedback=feedback)
