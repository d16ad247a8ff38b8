"""Tests for the bundled JSON schemas."""

import jsonschema
import pytest

from zzz_coordinator.schemas import (
    get_coordination_message_schema,
    validate_coordination_message,
)


class TestCoordinationMessageSchema:
    def test_schema_is_valid(self) -> None:
        schema = get_coordination_message_schema()

        jsonschema.validators.validator_for(schema).check_schema(schema)

    @pytest.mark.parametrize(
        "data",
        [
            {"type": "StartReview", "task_id": "42"},
            {"type": "StartReview", "task_id": 42},
            {"type": "TaskCompleted", "task_id": "42", "task_index": 0},
            {
                "type": "PhaseTransition",
                "task_id": "42",
                "from_phase": "ReviewComplete",
                "to_phase": "Finished",
            },
            {
                "target_pane": "Overseer",
                "sender": "zzz-coordinator",
                "timestamp": 1,
                "message": {"type": "AllTasksComplete", "task_id": "42"},
            },
        ],
    )
    def test_accepts(self, data) -> None:
        validate_coordination_message(data)

    @pytest.mark.parametrize(
        "data",
        [
            {"type": "StartReview"},
            {"type": "StartPlanning", "task_id": "42"},
            {"type": "TaskCompleted", "task_id": "42", "task_index": -1},
            {
                "type": "PhaseTransition",
                "task_id": "42",
                "from_phase": "Done",
                "to_phase": "Finished",
            },
            {"message": {"type": "StartReview", "task_id": "42"}, "pane": "x"},
            "StartReview",
        ],
    )
    def test_rejects(self, data) -> None:
        with pytest.raises(jsonschema.ValidationError):
            validate_coordination_message(data)
