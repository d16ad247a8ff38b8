"""
zzz-coordinator: workflow coordination for a multi-agent development task.

Reconciles artifact changes and inbound messages for one task into a single
workflow phase, and tells the Overseer and Commander what to do next.

Example:
    from zzz_coordinator.bootstrap import build_coordinator
    from zzz_coordinator.config import CoordinatorConfig

    config = CoordinatorConfig(task_id="42", feature_description="add auth")
    coordinator = build_coordinator(config)
    coordinator.start()
    coordinator.run()
"""

from zzz_coordinator.domain.exceptions import (
    ConfigError,
    CoordinatorError,
    DeliveryError,
    ObserverError,
    ParseError,
    StoreError,
    TransitionGuardError,
)
from zzz_coordinator.domain.messages import (
    AllTasksComplete,
    ApplyReviewSuggestions,
    CoordinationMessage,
    PhaseTransition,
    PlanReady,
    ReviewReady,
    StartImplementation,
    StartPlanning,
    StartReview,
    TaskCompleted,
)
from zzz_coordinator.domain.models import ParticipantRole, WorkflowPhase
from zzz_coordinator.domain.workflow import WorkflowStateMachine

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Workflow
    "WorkflowPhase",
    "ParticipantRole",
    "WorkflowStateMachine",
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
    # Errors
    "CoordinatorError",
    "StoreError",
    "ObserverError",
    "DeliveryError",
    "ParseError",
    "ConfigError",
    "TransitionGuardError",
]
