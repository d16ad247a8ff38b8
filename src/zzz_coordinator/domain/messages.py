"""
Coordination messages exchanged between the coordinator and participants.

A closed sum type: one frozen dataclass per tag. ``CoordinationMessage`` is
the union of all variants; dispatch on it with ``match`` and finish with
``assert_never`` so a new variant cannot be silently ignored.
"""

from dataclasses import asdict, dataclass, fields
from typing import Any, ClassVar, Union

from zzz_coordinator.domain.exceptions import DeliveryError, ParseError
from zzz_coordinator.domain.models import ParticipantRole


@dataclass(frozen=True)
class StartPlanning:
    """Coordinator asks the Overseer to write a plan."""

    TAG: ClassVar[str] = "StartPlanning"

    task_id: str
    description: str


@dataclass(frozen=True)
class PlanReady:
    """A non-empty todo list exists."""

    TAG: ClassVar[str] = "PlanReady"

    task_id: str
    todo_path: str


@dataclass(frozen=True)
class StartImplementation:
    TAG: ClassVar[str] = "StartImplementation"

    task_id: str
    plan_path: str


@dataclass(frozen=True)
class TaskCompleted:
    """A single checklist item was finished (participant progress hint)."""

    TAG: ClassVar[str] = "TaskCompleted"

    task_id: str
    task_index: int


@dataclass(frozen=True)
class AllTasksComplete:
    TAG: ClassVar[str] = "AllTasksComplete"

    task_id: str


@dataclass(frozen=True)
class StartReview:
    TAG: ClassVar[str] = "StartReview"

    task_id: str


@dataclass(frozen=True)
class ReviewReady:
    TAG: ClassVar[str] = "ReviewReady"

    task_id: str
    review_path: str


@dataclass(frozen=True)
class ApplyReviewSuggestions:
    TAG: ClassVar[str] = "ApplyReviewSuggestions"

    task_id: str


@dataclass(frozen=True)
class PhaseTransition:
    """Status broadcast for viewer roles."""

    TAG: ClassVar[str] = "PhaseTransition"

    task_id: str
    from_phase: str
    to_phase: str


CoordinationMessage = Union[
    StartPlanning,
    PlanReady,
    StartImplementation,
    TaskCompleted,
    AllTasksComplete,
    StartReview,
    ReviewReady,
    ApplyReviewSuggestions,
    PhaseTransition,
]

MESSAGE_TYPES: dict[str, type] = {
    cls.TAG: cls
    for cls in (
        StartPlanning,
        PlanReady,
        StartImplementation,
        TaskCompleted,
        AllTasksComplete,
        StartReview,
        ReviewReady,
        ApplyReviewSuggestions,
        PhaseTransition,
    )
}


def message_to_dict(message: CoordinationMessage) -> dict[str, Any]:
    """Tagged record form: ``{"type": <tag>, ...payload}``."""
    return {"type": message.TAG, **asdict(message)}


def message_from_dict(data: dict[str, Any]) -> CoordinationMessage:
    """Build a message from its tagged record form.

    Raises:
        ParseError: If the tag is unknown or payload fields are missing
    """
    tag = data.get("type")
    cls = MESSAGE_TYPES.get(tag) if isinstance(tag, str) else None
    if cls is None:
        raise ParseError(f"Unknown message type: {tag!r}")

    names = [f.name for f in fields(cls)]
    missing = [name for name in names if name not in data]
    if missing:
        raise ParseError(f"{tag} missing fields: {', '.join(missing)}")

    payload = {name: data[name] for name in names}
    # task ids may arrive as integers from older participants
    payload["task_id"] = str(payload["task_id"])
    message: CoordinationMessage = cls(**payload)
    return message


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of delivering one message to one role."""

    role: ParticipantRole
    endpoint_name: str | None = None
    error: DeliveryError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
