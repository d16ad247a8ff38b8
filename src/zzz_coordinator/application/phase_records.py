"""
Persistence of the task's phase record (``phase.json``).

The record is written through the artifact store, so every update is an
atomic replace of the whole file.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any

from zzz_coordinator.domain.exceptions import (
    ParseError,
    StoreError,
    StoreErrorKind,
)
from zzz_coordinator.domain.interfaces import ArtifactStoreInterface
from zzz_coordinator.domain.models import PhaseChange, PhaseRecord, WorkflowPhase
from zzz_coordinator.domain.task import Task, TaskLayout

logger = logging.getLogger(__name__)


class PhaseRecordRepository:
    """Load and save the phase record of one task."""

    def __init__(self, store: ArtifactStoreInterface, layout: TaskLayout):
        self._store = store
        self._layout = layout

    def _record_to_dict(self, record: PhaseRecord) -> dict[str, Any]:
        """Serialize record to JSON-compatible dict."""
        return {
            "task_id": record.task_id,
            "description": record.description,
            "phase": record.phase.value,
            "updated_at": record.updated_at,
            "history": [
                {"from": c.from_phase.value, "to": c.to_phase.value, "at": c.at}
                for c in record.history
            ],
        }

    def _dict_to_record(self, data: dict[str, Any]) -> PhaseRecord:
        """Deserialize record from JSON dict."""
        try:
            return PhaseRecord(
                task_id=str(data["task_id"]),
                description=data.get("description", ""),
                phase=WorkflowPhase(data["phase"]),
                updated_at=data.get("updated_at", ""),
                history=tuple(
                    PhaseChange(
                        from_phase=WorkflowPhase(entry["from"]),
                        to_phase=WorkflowPhase(entry["to"]),
                        at=entry["at"],
                    )
                    for entry in data.get("history", [])
                ),
            )
        except (KeyError, ValueError, TypeError) as e:
            raise ParseError(f"Invalid phase record: {e}") from e

    def load(self) -> PhaseRecord | None:
        """
        Load the persisted record.

        Returns:
            The record, or None if the task has never been started

        Raises:
            ParseError: If the record exists but is malformed
            StoreError: If the record could not be read
        """
        try:
            content = self._store.read(self._layout.phase_record)
        except StoreError as e:
            if e.kind is StoreErrorKind.NOT_FOUND:
                return None
            raise
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise ParseError(f"{self._layout.phase_record} is not JSON: {e}") from e
        if not isinstance(data, dict):
            raise ParseError(f"{self._layout.phase_record} is not a JSON object")
        return self._dict_to_record(data)

    def save(self, record: PhaseRecord, timeout: float | None = None) -> None:
        """Atomically replace the persisted record."""
        content = json.dumps(self._record_to_dict(record), indent=2)
        self._store.write(self._layout.phase_record, content + "\n", timeout=timeout)
        logger.debug("Persisted phase %s", record.phase.value)

    def initial(self, task: Task) -> PhaseRecord:
        """Record for a task that has not left Initializing."""
        return PhaseRecord(
            task_id=task.task_id,
            description=task.description,
            phase=WorkflowPhase.INITIALIZING,
            updated_at=datetime.now(timezone.utc).isoformat(),
        )
