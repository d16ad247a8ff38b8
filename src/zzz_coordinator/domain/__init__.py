"""
Domain layer for the task coordinator.

Contains the workflow rules with no I/O dependencies.
"""

from zzz_coordinator.domain.exceptions import (
    ConfigError,
    CoordinatorError,
    DeliveryError,
    DeliveryFailure,
    ObserverError,
    ParseError,
    StoreError,
    StoreErrorKind,
    TransitionGuardError,
)
from zzz_coordinator.domain.interfaces import (
    ArtifactStoreInterface,
    ChangeSubscriptionInterface,
    EndpointInterface,
    EndpointResolverInterface,
    FileObserverInterface,
    GuardInterface,
    MessageChannelInterface,
)
from zzz_coordinator.domain.messages import (
    AllTasksComplete,
    ApplyReviewSuggestions,
    CoordinationMessage,
    DeliveryResult,
    PhaseTransition,
    PlanReady,
    ReviewReady,
    StartImplementation,
    StartPlanning,
    StartReview,
    TaskCompleted,
)
from zzz_coordinator.domain.models import (
    ErrorKind,
    FileChange,
    FileChangeKind,
    GuardResult,
    Notification,
    NotificationKind,
    ParticipantRole,
    PhaseRecord,
    RetryPolicy,
    TodoProgress,
    WorkflowPhase,
)
from zzz_coordinator.domain.task import Task, TaskLayout
from zzz_coordinator.domain.workflow import (
    Outbound,
    Transition,
    WorkflowGuards,
    WorkflowStateMachine,
)

__all__ = [
    # Models
    "WorkflowPhase",
    "ParticipantRole",
    "FileChange",
    "FileChangeKind",
    "TodoProgress",
    "GuardResult",
    "ErrorKind",
    "Notification",
    "NotificationKind",
    "PhaseRecord",
    "RetryPolicy",
    "Task",
    "TaskLayout",
    # Messages
    "CoordinationMessage",
    "StartPlanning",
    "PlanReady",
    "StartImplementation",
    "TaskCompleted",
    "AllTasksComplete",
    "StartReview",
    "ReviewReady",
    "ApplyReviewSuggestions",
    "PhaseTransition",
    "DeliveryResult",
    # State machine
    "WorkflowStateMachine",
    "WorkflowGuards",
    "Transition",
    "Outbound",
    # Interfaces
    "ArtifactStoreInterface",
    "GuardInterface",
    "EndpointInterface",
    "EndpointResolverInterface",
    "MessageChannelInterface",
    "FileObserverInterface",
    "ChangeSubscriptionInterface",
    # Exceptions
    "CoordinatorError",
    "StoreError",
    "StoreErrorKind",
    "ObserverError",
    "DeliveryError",
    "DeliveryFailure",
    "ParseError",
    "ConfigError",
    "TransitionGuardError",
]
