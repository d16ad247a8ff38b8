"""
Coordinator: the composition root and single event loop for one task.

Producers (the file observer pump and the inbound reader) feed one ordered
event queue. The loop takes one event at a time, asks the state machine for
a transition, persists it, commits it and then sends its messages. Only this
module performs side effects on behalf of the workflow.
"""

import json
import logging
import threading
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from zzz_coordinator.application.event_queue import EventQueue
from zzz_coordinator.application.notifications import NotificationQueue
from zzz_coordinator.application.phase_records import PhaseRecordRepository
from zzz_coordinator.config import CoordinatorConfig
from zzz_coordinator.domain.events import (
    AdvanceImmediate,
    FileChanged,
    MessageReceived,
    MessageRejected,
    ObserverFailed,
    OperatorCommand,
    RetryEvent,
    RetrySend,
    Shutdown,
    TaskStarted,
    WorkflowEvent,
)
from zzz_coordinator.domain.exceptions import (
    ObserverError,
    ParseError,
    StoreError,
    TransitionGuardError,
)
from zzz_coordinator.domain.interfaces import (
    ArtifactStoreInterface,
    ChangeSubscriptionInterface,
    FileObserverInterface,
    MessageChannelInterface,
)
from zzz_coordinator.domain.messages import CoordinationMessage, message_to_dict
from zzz_coordinator.domain.models import (
    ErrorKind,
    NotificationKind,
    ParticipantRole,
    PhaseRecord,
    WorkflowPhase,
)
from zzz_coordinator.domain.task import Task, TaskLayout
from zzz_coordinator.domain.workflow import (
    Outbound,
    Transition,
    WorkflowGuards,
    WorkflowStateMachine,
)
from zzz_coordinator.guards import (
    ImplementationCompleteGuard,
    PlanReadyGuard,
    ReviewReadyGuard,
)

logger = logging.getLogger(__name__)

# Max seconds the loop blocks before re-checking its stop conditions
_POLL_INTERVAL = 0.5


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class CoordinatorContext:
    """Everything a handler needs; owned by the loop thread."""

    config: CoordinatorConfig
    task: Task
    layout: TaskLayout
    store: ArtifactStoreInterface
    records: PhaseRecordRepository
    record: PhaseRecord
    machine: WorkflowStateMachine
    channel: MessageChannelInterface
    events: EventQueue
    notifications: NotificationQueue

    @property
    def phase(self) -> WorkflowPhase:
        return self.machine.phase


def build_guards(layout: TaskLayout) -> WorkflowGuards:
    return WorkflowGuards(
        plan_ready=PlanReadyGuard(layout.todo_list),
        implementation_complete=ImplementationCompleteGuard(layout.todo_list),
        review_ready=ReviewReadyGuard(layout.review),
    )


class Coordinator:
    """
    Drives one task through its workflow.

    Typical use::

        coordinator = Coordinator(config, store, channel, observer_factory)
        coordinator.start()
        coordinator.run()

    Concrete adapters are wired by ``zzz_coordinator.bootstrap``. Tests can
    skip the observer thread and call ``submit`` and ``process_pending``.
    """

    def __init__(
        self,
        config: CoordinatorConfig,
        store: ArtifactStoreInterface,
        channel: MessageChannelInterface,
        observer_factory: Callable[[TaskLayout], FileObserverInterface] | None = None,
        participant_names: Iterable[str] = (),
        before_archive: Callable[[], None] | None = None,
    ):
        """
        Args:
            config: Validated coordinator options
            store: Artifact store holding the task directory
            channel: Delivers messages to participant roles
            observer_factory: Builds the watcher for the task directory;
                None disables watching
            participant_names: Endpoint names to map to roles by their text
            before_archive: Called right before the task directory is moved,
                e.g. to close log files inside it
        """
        self._config = config
        self._store = store
        self._channel = channel
        self._observer_factory = observer_factory
        self._participant_names = list(participant_names)
        self._before_archive = before_archive
        self._policy = config.retry_policy
        self._context: CoordinatorContext | None = None
        self._subscription: ChangeSubscriptionInterface | None = None
        self._threads: list[threading.Thread] = []
        self._stop_hooks: list[Callable[[], None]] = []
        self._stopping = False
        self._starting_phase: WorkflowPhase | None = None
        self._archived_to: Path | None = None

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @property
    def started(self) -> bool:
        return self._context is not None

    @property
    def context(self) -> CoordinatorContext:
        if self._context is None:
            raise RuntimeError("Coordinator not started")
        return self._context

    @property
    def phase(self) -> WorkflowPhase:
        return self.context.phase

    def phase_label(self) -> str:
        """Phase name for log records, known from the moment ``start`` loads it."""
        if self._context is not None:
            return self._context.phase.value
        if self._starting_phase is not None:
            return self._starting_phase.value
        return "-"

    @property
    def notifications(self) -> NotificationQueue:
        return self.context.notifications

    @property
    def archived_to(self) -> Path | None:
        return self._archived_to

    def start(self) -> CoordinatorContext:
        """
        Prepare the task directory, adopt the persisted phase and queue the
        startup events.

        Raises:
            StoreError: If the task directory or phase record cannot be set up
        """
        config = self._config
        task = Task(task_id=config.task_id, description=config.feature_description)
        layout = self._store.ensure_directory(task.task_id)
        records = PhaseRecordRepository(self._store, layout)
        notifications = NotificationQueue()

        try:
            record = records.load()
        except ParseError as e:
            self._starting_phase = WorkflowPhase.INITIALIZING
            notifications.push(
                NotificationKind.MESSAGE_REJECTED,
                f"Ignoring unreadable phase record: {e}",
                WorkflowPhase.INITIALIZING,
                ErrorKind.PARSE,
            )
            record = None
        resumed = record is not None
        if record is None:
            record = records.initial(task)
            records.save(record, timeout=config.operation_timeout)
        self._starting_phase = record.phase

        machine = WorkflowStateMachine(
            task,
            layout,
            build_guards(layout),
            phase=record.phase,
            auto_finish=config.auto_finish,
        )
        channel = self._channel
        channel.discover(self._participant_names)
        channel.register(config.overseer_pane, ParticipantRole.OVERSEER)
        channel.register(config.commander_pane, ParticipantRole.COMMANDER)

        self._context = CoordinatorContext(
            config=config,
            task=task,
            layout=layout,
            store=self._store,
            records=records,
            record=record,
            machine=machine,
            channel=channel,
            events=EventQueue(),
            notifications=notifications,
        )
        logger.info(
            "Task %s %s in phase %s",
            task.task_id,
            "resumed" if resumed else "created",
            record.phase.value,
        )
        self._queue_startup_events(machine.phase)
        return self._context

    def _queue_startup_events(self, phase: WorkflowPhase) -> None:
        ctx = self.context
        if phase is WorkflowPhase.INITIALIZING:
            ctx.events.put(TaskStarted())
            return
        if phase.is_terminal:
            return
        # The entry message of the persisted phase may never have gone out
        for outbound in ctx.machine.entry_outbound(phase):
            self._send(outbound.role, outbound.message, attempt=1)
        ctx.events.put(AdvanceImmediate())

    def submit(self, event: WorkflowEvent) -> None:
        """Queue an event from any thread."""
        self.context.events.put(event)

    def stop(self) -> None:
        """Ask the loop to stop after the current event."""
        self.context.events.put(Shutdown())

    def on_stop(self, hook: Callable[[], None]) -> None:
        """Register a hook run when the loop exits, e.g. to stop a producer."""
        self._stop_hooks.append(hook)

    @property
    def is_done(self) -> bool:
        """True once nothing is left to do: stopped, or finished and idle."""
        ctx = self.context
        return self._stopping or (ctx.phase.is_terminal and ctx.events.empty())

    def run(self) -> WorkflowPhase:
        """
        Run the loop until the task finishes or the loop is stopped.

        Archives the task directory when it finishes, if configured to.

        Returns:
            The phase the task ended in

        Raises:
            ObserverError: If the task directory could not be watched
        """
        ctx = self._context or self.start()
        try:
            if self._observer_factory is not None:
                self._start_observer(self._observer_factory(ctx.layout))
            while not self.is_done:
                event = ctx.events.get(timeout=_POLL_INTERVAL)
                if event is not None:
                    self.handle(event)
        finally:
            self._shutdown_producers()

        if ctx.phase.is_terminal and ctx.config.archive_on_finish:
            self.archive()
        return ctx.phase

    def process_pending(self, timeout: float = 0.0) -> int:
        """
        Handle queued events until none arrives within ``timeout``.

        Returns:
            Number of events handled
        """
        ctx = self.context
        handled = 0
        while not self._stopping:
            event = ctx.events.get(timeout=timeout)
            if event is None:
                break
            self.handle(event)
            handled += 1
        return handled

    def archive(self) -> Path | None:
        """Move the finished task directory under ``archive/``."""
        ctx = self.context
        if not ctx.phase.is_terminal or self._archived_to is not None:
            return self._archived_to
        logger.info("Archiving task %s", ctx.task.task_id)
        if self._before_archive is not None:
            self._before_archive()
        self._archived_to = ctx.store.archive(ctx.task.task_id)
        return self._archived_to

    # -------------------------------------------------------------------------
    # Producers
    # -------------------------------------------------------------------------

    def _start_observer(self, observer: FileObserverInterface) -> None:
        self._subscription = observer.subscribe()
        thread = threading.Thread(
            target=self._pump_observer,
            args=(self._subscription, self.context.events),
            name="zzz-observer",
            daemon=True,
        )
        thread.start()
        self._threads.append(thread)

    @staticmethod
    def _pump_observer(
        subscription: ChangeSubscriptionInterface, events: EventQueue
    ) -> None:
        try:
            for change in subscription:
                events.put(FileChanged(change))
        except ObserverError as e:
            events.put(ObserverFailed(str(e)))

    def _shutdown_producers(self) -> None:
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None
        for thread in self._threads:
            thread.join(timeout=_POLL_INTERVAL * 2)
        self._threads.clear()
        for hook in self._stop_hooks:
            hook()
        self._stop_hooks.clear()

    # -------------------------------------------------------------------------
    # Event handling
    # -------------------------------------------------------------------------

    def handle(self, event: WorkflowEvent) -> None:
        """
        Process one event.

        Raises:
            ObserverError: On an observer failure, which is terminal
        """
        ctx = self.context
        match event:
            case Shutdown():
                self._stopping = True
                return
            case ObserverFailed(reason=reason):
                logger.error(
                    "Observer failed: %s (error_kind=%s)",
                    reason,
                    ErrorKind.OBSERVER.value,
                )
                self._stopping = True
                raise ObserverError(reason)
            case RetrySend(role=role, message=message, attempt=attempt):
                self._send(role, message, attempt)
                return
            case RetryEvent(event=inner, attempt=attempt):
                self._dispatch(inner, attempt)
                return
            case MessageRejected(payload=payload, reason=reason, sender=sender):
                ctx.notifications.push(
                    NotificationKind.MESSAGE_REJECTED,
                    f"Rejected payload from {sender}: {reason}: {payload[:200]}",
                    ctx.phase,
                    ErrorKind.PARSE,
                )
                return
            case MessageReceived(message=message, sender=sender):
                if message.task_id != ctx.task.task_id:
                    ctx.notifications.push(
                        NotificationKind.MESSAGE_REJECTED,
                        f"Ignoring {message.TAG} from {sender} for task "
                        f"{message.task_id}",
                        ctx.phase,
                    )
                    return
                ctx.notifications.push(
                    NotificationKind.MESSAGE_RECEIVED,
                    f"{message.TAG} from {sender}",
                    ctx.phase,
                )
            case FileChanged(change=change):
                ctx.notifications.push(
                    NotificationKind.FILE_CHANGED,
                    f"{change.filename} {change.kind.value}",
                    ctx.phase,
                )
            case TaskStarted() | AdvanceImmediate() | OperatorCommand():
                pass
        self._dispatch(event, attempt=1)

    def _dispatch(self, event: WorkflowEvent, attempt: int) -> None:
        ctx = self.context
        try:
            transition = ctx.machine.decide(event, ctx.store)
        except TransitionGuardError as e:
            ctx.notifications.push(
                NotificationKind.GUARD_DEFERRED,
                str(e),
                ctx.phase,
                ErrorKind.TRANSITION_GUARD,
            )
            return

        while transition is not None:
            if not self._apply(transition, event, attempt):
                return
            if transition.is_reset:
                ctx.events.put(TaskStarted())
                return
            event, attempt = AdvanceImmediate(), 1
            transition = ctx.machine.decide(event, ctx.store)

    def _apply(
        self, transition: Transition, event: WorkflowEvent, attempt: int
    ) -> bool:
        """Persist, commit and announce ``transition``. False if not persisted."""
        ctx = self.context
        if transition.send_before_persist:
            self._send_all(transition.outbound)

        record = ctx.record.advance(transition.to_phase, _now())
        try:
            ctx.records.save(record, timeout=ctx.config.operation_timeout)
        except StoreError as e:
            self._retry_event(event, attempt, e)
            return False
        ctx.record = record
        ctx.machine.commit(transition)

        ctx.notifications.push(
            NotificationKind.PHASE_CHANGED,
            f"{transition.from_phase.value} -> {transition.to_phase.value} "
            f"({transition.trigger})",
            ctx.phase,
        )
        if not transition.send_before_persist:
            self._send_all(transition.outbound)
        if ctx.config.status_broadcasts:
            viewers = [r for r in ctx.channel.registered_roles() if r.is_viewer]
            if viewers:
                ctx.channel.broadcast(
                    transition.status_broadcast(ctx.task.task_id), roles=viewers
                )
        return True

    def _retry_event(
        self, event: WorkflowEvent, attempt: int, error: StoreError
    ) -> None:
        ctx = self.context
        next_attempt = attempt + 1
        if self._policy.allows(next_attempt):
            delay = self._policy.delay_for(next_attempt)
            logger.warning(
                "Could not persist phase, retrying in %.2fs: %s (error_kind=%s)",
                delay,
                error,
                error.error_kind.value,
            )
            ctx.events.schedule(RetryEvent(event, next_attempt), delay)
            return
        ctx.notifications.push(
            NotificationKind.RETRY_EXHAUSTED,
            f"Phase not persisted after {attempt} attempts: {error}",
            ctx.phase,
            error.error_kind,
        )

    # -------------------------------------------------------------------------
    # Sending
    # -------------------------------------------------------------------------

    def _send_all(self, outbound: tuple[Outbound, ...]) -> None:
        for item in outbound:
            self._send(item.role, item.message, attempt=1)

    def _send(
        self, role: ParticipantRole, message: CoordinationMessage, attempt: int
    ) -> None:
        ctx = self.context
        result = ctx.channel.send(role, message)
        if result.ok:
            self._log_to_role(role, message)
            return

        error = result.error
        assert error is not None
        next_attempt = attempt + 1
        if error.retryable and self._policy.allows(next_attempt):
            ctx.events.schedule(
                RetrySend(role, message, next_attempt),
                self._policy.delay_for(next_attempt),
            )
            ctx.notifications.push(
                NotificationKind.SEND_FAILED,
                f"{message.TAG} to {role.value} failed (attempt {attempt}): {error}",
                ctx.phase,
                error.error_kind,
            )
            return
        kind = (
            NotificationKind.RETRY_EXHAUSTED
            if error.retryable
            else NotificationKind.SEND_FAILED
        )
        ctx.notifications.push(
            kind,
            f"{message.TAG} to {role.value} not delivered: {error}",
            ctx.phase,
            error.error_kind,
        )

    def _log_to_role(
        self, role: ParticipantRole, message: CoordinationMessage
    ) -> None:
        ctx = self.context
        if not ctx.config.enable_logging:
            return
        if role is ParticipantRole.OVERSEER:
            path = ctx.layout.overseer_log
        elif role is ParticipantRole.COMMANDER:
            path = ctx.layout.commander_log
        else:
            return
        line = f"[{int(time.time())}] {message.TAG} "
        line += json.dumps(message_to_dict(message), sort_keys=True) + "\n"
        try:
            ctx.store.append(path, line)
        except StoreError as e:
            logger.warning(
                "Could not write %s: %s (error_kind=%s)",
                path.name,
                e,
                e.error_kind.value,
            )
