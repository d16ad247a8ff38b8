"""Events consumed by the coordination loop, one at a time, in arrival order."""

from dataclasses import dataclass
from enum import Enum
from typing import Union

from zzz_coordinator.domain.messages import CoordinationMessage
from zzz_coordinator.domain.models import FileChange, ParticipantRole


class OperatorCommandKind(Enum):
    CONFIRM = "confirm"  # Review suggestions applied
    RESET = "reset"  # Return the task to Initializing


@dataclass(frozen=True)
class TaskStarted:
    """Task directory exists and the task identity is known."""


@dataclass(frozen=True)
class AdvanceImmediate:
    """Take the phase's no-trigger transition, if it has one."""


@dataclass(frozen=True)
class FileChanged:
    change: FileChange


@dataclass(frozen=True)
class MessageReceived:
    message: CoordinationMessage
    sender: str = "unknown"


@dataclass(frozen=True)
class MessageRejected:
    """An inbound payload that could not be decoded."""

    payload: str
    reason: str
    sender: str = "unknown"


@dataclass(frozen=True)
class OperatorCommand:
    kind: OperatorCommandKind


@dataclass(frozen=True)
class ObserverFailed:
    reason: str


@dataclass(frozen=True)
class RetrySend:
    """Re-attempt delivery of a message that failed to send."""

    role: ParticipantRole
    message: CoordinationMessage
    attempt: int


@dataclass(frozen=True)
class RetryEvent:
    """Re-process an event whose transition could not be persisted."""

    event: "WorkflowEvent"
    attempt: int


@dataclass(frozen=True)
class Shutdown:
    pass


WorkflowEvent = Union[
    TaskStarted,
    AdvanceImmediate,
    FileChanged,
    MessageReceived,
    MessageRejected,
    OperatorCommand,
    ObserverFailed,
    RetrySend,
    RetryEvent,
    Shutdown,
]
