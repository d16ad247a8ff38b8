"""Tests for PhaseRecordRepository."""

import json

import pytest

from zzz_coordinator.application import PhaseRecordRepository
from zzz_coordinator.domain.exceptions import ParseError
from zzz_coordinator.domain.models import WorkflowPhase
from zzz_coordinator.infrastructure.persistence import AtomicFileStore


class TestPhaseRecordRepository:
    def test_load_without_record(self, memory_store, layout) -> None:
        assert PhaseRecordRepository(memory_store, layout).load() is None

    def test_save_and_load(self, memory_store, layout, task) -> None:
        records = PhaseRecordRepository(memory_store, layout)
        record = records.initial(task).advance(
            WorkflowPhase.PLANNING_IN_PROGRESS, "2026-01-01T00:00:00+00:00"
        )

        records.save(record)

        assert records.load() == record

    def test_file_format(self, tmp_path, task) -> None:
        store = AtomicFileStore(tmp_path)
        layout = store.ensure_directory(task.task_id)
        records = PhaseRecordRepository(store, layout)
        record = records.initial(task).advance(WorkflowPhase.PLANNING_IN_PROGRESS, "t1")

        records.save(record)

        data = json.loads(layout.phase_record.read_text())
        assert data["task_id"] == "42"
        assert data["phase"] == "PlanningInProgress"
        assert data["history"] == [
            {"from": "Initializing", "to": "PlanningInProgress", "at": "t1"}
        ]

    @pytest.mark.parametrize(
        "content",
        [
            "{not json",
            "[]",
            '{"task_id": "42"}',
            '{"task_id": "42", "phase": "Sleeping"}',
        ],
    )
    def test_malformed_record(self, memory_store, layout, content) -> None:
        memory_store.write(layout.phase_record, content)

        with pytest.raises(ParseError):
            PhaseRecordRepository(memory_store, layout).load()
