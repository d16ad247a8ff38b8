"""
Domain models for the task coordinator.

These are pure data structures describing a coordinated task: its workflow
phase, the participant roles, file change observations, notifications and
the persisted phase record.
All models are immutable (frozen dataclasses) unless noted otherwise.
"""

from dataclasses import dataclass, field
from enum import Enum

# =============================================================================
# WORKFLOW PHASE
# =============================================================================


class WorkflowPhase(Enum):
    """Stage of the coordinated workflow.

    Declaration order is the forward order of the workflow.
    """

    INITIALIZING = "Initializing"
    PLANNING_IN_PROGRESS = "PlanningInProgress"
    PLAN_READY = "PlanReady"
    IMPLEMENTATION_IN_PROGRESS = "ImplementationInProgress"
    IMPLEMENTATION_COMPLETE = "ImplementationComplete"
    REVIEW_IN_PROGRESS = "ReviewInProgress"
    REVIEW_COMPLETE = "ReviewComplete"
    FINISHED = "Finished"

    @property
    def ordinal(self) -> int:
        return list(WorkflowPhase).index(self)

    @property
    def is_terminal(self) -> bool:
        return self is WorkflowPhase.FINISHED

    def precedes(self, other: "WorkflowPhase") -> bool:
        return self.ordinal < other.ordinal


# =============================================================================
# PARTICIPANTS
# =============================================================================


class ParticipantRole(Enum):
    """Logical participant category mapped to a live endpoint."""

    OVERSEER = "Overseer"
    COMMANDER = "Commander"
    TASK_LIST = "TaskList"
    REVIEW = "Review"
    EDITOR = "Editor"

    @property
    def is_viewer(self) -> bool:
        return self in VIEWER_ROLES


VIEWER_ROLES = frozenset(
    {ParticipantRole.TASK_LIST, ParticipantRole.REVIEW, ParticipantRole.EDITOR}
)


# =============================================================================
# FILE OBSERVATION
# =============================================================================


class FileChangeKind(Enum):
    """Kind of a normalized file change."""

    CREATED = "created"
    MODIFIED = "modified"
    REMOVED = "removed"


@dataclass(frozen=True)
class FileChange:
    """One logical change to a watched file."""

    kind: FileChangeKind
    filename: str  # Basename relative to the watched directory
    observed_at: float  # Unix timestamp of the latest raw event


# =============================================================================
# ARTIFACT CLASSIFICATION
# =============================================================================


@dataclass(frozen=True)
class TodoProgress:
    """Checklist completion counts read from the todo list."""

    total: int
    completed: int

    @property
    def fraction(self) -> float:
        if self.total == 0:
            return 0.0
        return self.completed / self.total

    @property
    def is_ready(self) -> bool:
        """A plan with no checklist items is never ready."""
        return self.total > 0

    @property
    def is_complete(self) -> bool:
        return self.total > 0 and self.completed == self.total


# =============================================================================
# NOTIFICATIONS
# =============================================================================


class ErrorKind(Enum):
    """Error taxonomy used in logs and notifications."""

    IO = "IOError"
    DELIVERY = "DeliveryError"
    PARSE = "ParseError"
    CONFIG = "ConfigError"
    TRANSITION_GUARD = "TransitionGuardError"
    OBSERVER = "ObserverError"


class NotificationKind(Enum):
    """What a queued notification is about."""

    FILE_CHANGED = "file_changed"
    MESSAGE_RECEIVED = "message_received"
    SEND_FAILED = "send_failed"
    RETRY_EXHAUSTED = "retry_exhausted"
    GUARD_DEFERRED = "guard_deferred"
    MESSAGE_REJECTED = "message_rejected"
    PHASE_CHANGED = "phase_changed"


@dataclass(frozen=True)
class Notification:
    """An outcome awaiting operator attention."""

    kind: NotificationKind
    message: str
    phase: WorkflowPhase
    created_at: str  # ISO 8601
    error_kind: ErrorKind | None = None


# =============================================================================
# PERSISTED PHASE RECORD
# =============================================================================


@dataclass(frozen=True)
class PhaseChange:
    """One entry of the persisted phase history."""

    from_phase: WorkflowPhase
    to_phase: WorkflowPhase
    at: str  # ISO 8601


@dataclass(frozen=True)
class PhaseRecord:
    """Durable record of a task's current phase.

    Disk is authoritative: on startup the coordinator adopts this phase
    instead of re-deriving it from artifacts.
    """

    task_id: str
    description: str
    phase: WorkflowPhase
    updated_at: str
    history: tuple[PhaseChange, ...] = field(default_factory=tuple)

    def advance(self, to_phase: WorkflowPhase, at: str) -> "PhaseRecord":
        return PhaseRecord(
            task_id=self.task_id,
            description=self.description,
            phase=to_phase,
            updated_at=at,
            history=self.history + (PhaseChange(self.phase, to_phase, at),),
        )


# =============================================================================
# RETRY POLICY
# =============================================================================


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff with a capped number of attempts."""

    max_attempts: int = 3
    base_delay: float = 0.5
    factor: float = 2.0

    def delay_for(self, attempt: int) -> float:
        """Delay before ``attempt`` (attempt 2 is the first retry)."""
        return self.base_delay * self.factor ** max(attempt - 2, 0)

    def allows(self, attempt: int) -> bool:
        return attempt <= self.max_attempts


# =============================================================================
# GUARD RESULT
# =============================================================================


@dataclass(frozen=True)
class GuardResult:
    """Immutable guard evaluation outcome."""

    passed: bool
    feedback: str = ""
