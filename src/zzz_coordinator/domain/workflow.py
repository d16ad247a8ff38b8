"""
Workflow state machine for a coordinated task.

Holds the current phase and decides, from one event at a time, whether a
guarded transition fires. It performs no I/O of its own besides reading
artifacts through the guards. The coordinator persists a decided
transition, adopts it with ``commit`` and only then sends its messages.

Transition table (from -> to, message emitted on entry):

    Initializing -> PlanningInProgress            StartPlanning -> Overseer
    PlanningInProgress -> PlanReady               PlanReady -> Commander
    PlanReady -> ImplementationInProgress         StartImplementation -> Commander
    ImplementationInProgress -> ImplementationComplete  AllTasksComplete -> Overseer
    ImplementationComplete -> ReviewInProgress    StartReview -> Overseer
    ReviewInProgress -> ReviewComplete            ReviewReady -> Commander
    ReviewComplete -> Finished                    ApplyReviewSuggestions -> Commander

Only an operator reset moves backwards (to Initializing).
"""

from dataclasses import dataclass
from typing import assert_never

from zzz_coordinator.domain.events import (
    AdvanceImmediate,
    FileChanged,
    MessageReceived,
    MessageRejected,
    ObserverFailed,
    OperatorCommand,
    OperatorCommandKind,
    RetryEvent,
    RetrySend,
    Shutdown,
    TaskStarted,
    WorkflowEvent,
)
from zzz_coordinator.domain.interfaces import ArtifactStoreInterface, GuardInterface
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
from zzz_coordinator.domain.models import (
    FileChangeKind,
    ParticipantRole,
    WorkflowPhase,
)
from zzz_coordinator.domain.task import Task, TaskLayout

NEXT_PHASE: dict[WorkflowPhase, WorkflowPhase] = {
    WorkflowPhase.INITIALIZING: WorkflowPhase.PLANNING_IN_PROGRESS,
    WorkflowPhase.PLANNING_IN_PROGRESS: WorkflowPhase.PLAN_READY,
    WorkflowPhase.PLAN_READY: WorkflowPhase.IMPLEMENTATION_IN_PROGRESS,
    WorkflowPhase.IMPLEMENTATION_IN_PROGRESS: WorkflowPhase.IMPLEMENTATION_COMPLETE,
    WorkflowPhase.IMPLEMENTATION_COMPLETE: WorkflowPhase.REVIEW_IN_PROGRESS,
    WorkflowPhase.REVIEW_IN_PROGRESS: WorkflowPhase.REVIEW_COMPLETE,
    WorkflowPhase.REVIEW_COMPLETE: WorkflowPhase.FINISHED,
}

# Phases left without any external trigger
IMMEDIATE_PHASES = frozenset(
    {WorkflowPhase.PLAN_READY, WorkflowPhase.IMPLEMENTATION_COMPLETE}
)

_ARTIFACT_WRITES = frozenset({FileChangeKind.CREATED, FileChangeKind.MODIFIED})


@dataclass(frozen=True)
class Outbound:
    """A message addressed to one role."""

    role: ParticipantRole
    message: CoordinationMessage


@dataclass(frozen=True)
class Transition:
    """A decided phase change and the messages it emits.

    ``send_before_persist`` is set only for entering Finished, whose
    message must go out while the task is still in ReviewComplete.
    """

    from_phase: WorkflowPhase
    to_phase: WorkflowPhase
    outbound: tuple[Outbound, ...]
    trigger: str
    send_before_persist: bool = False

    @property
    def is_reset(self) -> bool:
        return self.to_phase is WorkflowPhase.INITIALIZING

    def status_broadcast(self, task_id: str) -> PhaseTransition:
        return PhaseTransition(
            task_id=task_id,
            from_phase=self.from_phase.value,
            to_phase=self.to_phase.value,
        )


@dataclass(frozen=True)
class WorkflowGuards:
    """Guards for the three artifact-driven transitions."""

    plan_ready: GuardInterface
    implementation_complete: GuardInterface
    review_ready: GuardInterface


class WorkflowStateMachine:
    """
    Phase holder and transition decider for one task.

    ``decide`` never mutates the phase; ``commit`` does, once the
    coordinator has durably recorded the transition. Re-delivering a
    trigger after commit is a no-op because the machine is no longer in
    the transition's source phase.
    """

    def __init__(
        self,
        task: Task,
        layout: TaskLayout,
        guards: WorkflowGuards,
        phase: WorkflowPhase = WorkflowPhase.INITIALIZING,
        auto_finish: bool = False,
    ):
        """
        Args:
            task: Task identity
            layout: Paths of the task's artifacts
            guards: Guards evaluated on artifact events
            phase: Starting phase (the persisted phase on restart)
            auto_finish: Leave ReviewComplete without operator confirmation
        """
        self._task = task
        self._layout = layout
        self._guards = guards
        self._phase = phase
        self._auto_finish = auto_finish

    @property
    def phase(self) -> WorkflowPhase:
        return self._phase

    @property
    def task(self) -> Task:
        return self._task

    def entry_outbound(self, phase: WorkflowPhase) -> tuple[Outbound, ...]:
        """Messages emitted when ``phase`` is entered."""
        task_id = self._task.task_id
        if phase is WorkflowPhase.INITIALIZING:
            return ()
        if phase is WorkflowPhase.PLANNING_IN_PROGRESS:
            message: CoordinationMessage = StartPlanning(
                task_id=task_id, description=self._task.description
            )
            return (Outbound(ParticipantRole.OVERSEER, message),)
        if phase is WorkflowPhase.PLAN_READY:
            message = PlanReady(task_id=task_id, todo_path=str(self._layout.todo_list))
            return (Outbound(ParticipantRole.COMMANDER, message),)
        if phase is WorkflowPhase.IMPLEMENTATION_IN_PROGRESS:
            message = StartImplementation(
                task_id=task_id, plan_path=str(self._layout.plan)
            )
            return (Outbound(ParticipantRole.COMMANDER, message),)
        if phase is WorkflowPhase.IMPLEMENTATION_COMPLETE:
            return (Outbound(ParticipantRole.OVERSEER, AllTasksComplete(task_id)),)
        if phase is WorkflowPhase.REVIEW_IN_PROGRESS:
            return (Outbound(ParticipantRole.OVERSEER, StartReview(task_id)),)
        if phase is WorkflowPhase.REVIEW_COMPLETE:
            message = ReviewReady(task_id=task_id, review_path=str(self._layout.review))
            return (Outbound(ParticipantRole.COMMANDER, message),)
        if phase is WorkflowPhase.FINISHED:
            return (
                Outbound(ParticipantRole.COMMANDER, ApplyReviewSuggestions(task_id)),
            )
        assert_never(phase)

    def decide(
        self, event: WorkflowEvent, store: ArtifactStoreInterface
    ) -> Transition | None:
        """
        Decide the transition ``event`` triggers from the current phase.

        Args:
            event: The event being processed
            store: Store the guards read artifacts from

        Returns:
            The transition to apply, or None if the event changes nothing

        Raises:
            TransitionGuardError: If a guard could not be evaluated
        """
        match event:
            case TaskStarted():
                if self._phase is WorkflowPhase.INITIALIZING:
                    return self._advance("task started")
                return None
            case AdvanceImmediate():
                if self._phase in IMMEDIATE_PHASES:
                    return self._advance("immediate")
                if self._phase is WorkflowPhase.REVIEW_COMPLETE and self._auto_finish:
                    return self._advance("automatic confirmation")
                return None
            case FileChanged(change=change):
                if change.kind not in _ARTIFACT_WRITES:
                    return None
                return self._on_artifact_written(change.filename, store)
            case MessageReceived(message=message):
                return self._on_message(message, store)
            case OperatorCommand(kind=kind):
                return self._on_operator(kind)
            case (
                MessageRejected()
                | ObserverFailed()
                | RetrySend()
                | RetryEvent()
                | Shutdown()
            ):
                return None
            case _:
                assert_never(event)

    def commit(self, transition: Transition) -> None:
        """
        Adopt ``transition.to_phase`` after it has been persisted.

        Raises:
            ValueError: If the transition does not start at the current
                phase or skips a row of the table
        """
        if transition.from_phase is not self._phase:
            raise ValueError(
                f"Stale transition {transition.from_phase.value} -> "
                f"{transition.to_phase.value}; current phase is {self._phase.value}"
            )
        skips = NEXT_PHASE.get(self._phase) is not transition.to_phase
        if not transition.is_reset and skips:
            raise ValueError(
                f"Illegal transition {self._phase.value} -> {transition.to_phase.value}"
            )
        self._phase = transition.to_phase

    # -------------------------------------------------------------------------
    # Triggers
    # -------------------------------------------------------------------------

    def _on_artifact_written(
        self, filename: str, store: ArtifactStoreInterface
    ) -> Transition | None:
        trigger = f"{filename} written"
        if filename == self._layout.todo_list.name:
            if self._phase is WorkflowPhase.PLANNING_IN_PROGRESS:
                return self._guarded(self._guards.plan_ready, store, trigger)
            if self._phase is WorkflowPhase.IMPLEMENTATION_IN_PROGRESS:
                guard = self._guards.implementation_complete
                return self._guarded(guard, store, trigger)
        if filename == self._layout.review.name:
            if self._phase is WorkflowPhase.REVIEW_IN_PROGRESS:
                return self._guarded(self._guards.review_ready, store, trigger)
        return None

    def _on_message(
        self, message: CoordinationMessage, store: ArtifactStoreInterface
    ) -> Transition | None:
        # Inbound messages are hints; the artifact guard still decides.
        match message:
            case PlanReady():
                if self._phase is WorkflowPhase.PLANNING_IN_PROGRESS:
                    guard = self._guards.plan_ready
                    return self._guarded(guard, store, "PlanReady received")
                return None
            case TaskCompleted() | AllTasksComplete():
                if self._phase is WorkflowPhase.IMPLEMENTATION_IN_PROGRESS:
                    return self._guarded(
                        self._guards.implementation_complete,
                        store,
                        f"{message.TAG} received",
                    )
                return None
            case ReviewReady():
                if self._phase is WorkflowPhase.REVIEW_IN_PROGRESS:
                    return self._guarded(
                        self._guards.review_ready, store, "ReviewReady received"
                    )
                return None
            case (
                StartPlanning()
                | StartImplementation()
                | StartReview()
                | ApplyReviewSuggestions()
                | PhaseTransition()
            ):
                return None
            case _:
                assert_never(message)

    def _on_operator(self, kind: OperatorCommandKind) -> Transition | None:
        if kind is OperatorCommandKind.CONFIRM:
            if self._phase is WorkflowPhase.REVIEW_COMPLETE:
                return self._advance("operator confirmation")
            return None
        if kind is OperatorCommandKind.RESET:
            if self._phase is WorkflowPhase.INITIALIZING:
                return None
            return Transition(
                from_phase=self._phase,
                to_phase=WorkflowPhase.INITIALIZING,
                outbound=(),
                trigger="operator reset",
            )
        assert_never(kind)

    def _guarded(
        self, guard: GuardInterface, store: ArtifactStoreInterface, trigger: str
    ) -> Transition | None:
        result = guard.validate(store)
        if not result.passed:
            return None
        if result.feedback:
            trigger = f"{trigger}: {result.feedback}"
        return self._advance(trigger)

    def _advance(self, trigger: str) -> Transition:
        to_phase = NEXT_PHASE[self._phase]
        return Transition(
            from_phase=self._phase,
            to_phase=to_phase,
            outbound=self.entry_outbound(to_phase),
            trigger=trigger,
            send_before_persist=to_phase is WorkflowPhase.FINISHED,
        )
