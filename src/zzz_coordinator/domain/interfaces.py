"""
Domain interfaces (Ports) for the task coordinator.

These abstract base classes define the contracts that adapters in the
infrastructure layer must satisfy.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from pathlib import Path
from typing import TYPE_CHECKING

from zzz_coordinator.domain.models import FileChange, ParticipantRole

if TYPE_CHECKING:
    from zzz_coordinator.domain.messages import CoordinationMessage, DeliveryResult
    from zzz_coordinator.domain.models import GuardResult
    from zzz_coordinator.domain.task import TaskLayout


class ArtifactStoreInterface(ABC):
    """
    Port for durable, crash-safe artifact storage.

    Implementations must guarantee that a reader never observes a torn
    write: content is either fully replaced or left intact.
    """

    @abstractmethod
    def write(self, path: Path, content: str, timeout: float | None = None) -> None:
        """
        Atomically replace the content of ``path``.

        Args:
            path: Target file
            content: Full new content
            timeout: Max seconds to wait for the per-path write lock

        Raises:
            StoreError: On permission, space, directory or timeout failure
        """
        pass

    @abstractmethod
    def read(self, path: Path) -> str:
        """
        Read the full content of ``path``.

        Raises:
            StoreError: With kind NOT_FOUND if the file does not exist
            ParseError: If the content is not valid text
        """
        pass

    @abstractmethod
    def append(self, path: Path, content: str) -> None:
        """Append ``content`` to ``path``, creating it if needed."""
        pass

    @abstractmethod
    def exists(self, path: Path) -> bool:
        """True if ``path`` is an existing regular file."""
        pass

    @abstractmethod
    def ensure_directory(self, task_id: str) -> "TaskLayout":
        """
        Create the task directory tree idempotently.

        Parents are created as needed and existing directories are not an
        error.

        Returns:
            The layout of the task directory
        """
        pass

    @abstractmethod
    def archive(self, task_id: str) -> Path:
        """Move a finished task directory under ``archive/``; return the new path."""
        pass


class GuardInterface(ABC):
    """
    Port for transition guards.

    Guards read artifacts through the store and return a pass/fail
    verdict. A guard that cannot be evaluated raises TransitionGuardError.
    """

    @abstractmethod
    def validate(self, store: ArtifactStoreInterface) -> "GuardResult":
        """
        Evaluate the guard condition.

        Args:
            store: Store used to read the artifact under test

        Returns:
            GuardResult with passed=True/False and feedback
        """
        pass


class EndpointInterface(ABC):
    """Port for a live participant endpoint (a pane, a pipe, a process)."""

    @abstractmethod
    def deliver(self, payload: str, timeout: float) -> None:
        """
        Deliver an encoded message.

        Args:
            payload: Encoded coordination message
            timeout: Max seconds to wait for the endpoint

        Raises:
            TimeoutError: If the endpoint does not accept within ``timeout``
            OSError: If the endpoint is gone
        """
        pass


class EndpointResolverInterface(ABC):
    """Port resolving endpoint names to live endpoints."""

    @abstractmethod
    def resolve(self, name: str) -> EndpointInterface | None:
        """Return the endpoint currently known under ``name``, if any."""
        pass


class MessageChannelInterface(ABC):
    """
    Port for role-addressed message delivery.

    Delivery problems are returned as results, never raised.
    """

    @abstractmethod
    def register(self, name: str, role: ParticipantRole) -> None:
        """Map ``role`` to endpoint ``name``. Idempotent."""
        pass

    @abstractmethod
    def unregister(self, name: str) -> bool:
        """Remove ``name`` from the mapping."""
        pass

    @abstractmethod
    def discover(self, names: list[str]) -> dict[str, ParticipantRole]:
        """Register the names that identify a role by their text."""
        pass

    @abstractmethod
    def registered_roles(self) -> list[ParticipantRole]:
        pass

    @abstractmethod
    def send(
        self, role: ParticipantRole, message: "CoordinationMessage"
    ) -> "DeliveryResult":
        """Deliver ``message`` to the endpoint currently mapped to ``role``."""
        pass

    @abstractmethod
    def broadcast(
        self,
        message: "CoordinationMessage",
        roles: list[ParticipantRole] | None = None,
    ) -> dict[ParticipantRole, "DeliveryResult"]:
        """Send to every mapped role (or ``roles``); one result per role."""
        pass


class ChangeSubscriptionInterface(Iterator[FileChange]):
    """Port for a pull-based stream of debounced file changes."""

    @abstractmethod
    def next_event(self, timeout: float | None = None) -> FileChange | None:
        """
        Pull one change, or None when ``timeout`` elapses.

        Raises:
            ObserverError: If the watched directory can no longer be watched
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Stop the stream. Idempotent."""
        pass


class FileObserverInterface(ABC):
    """Port for watching the artifacts of a task directory."""

    @abstractmethod
    def subscribe(self) -> ChangeSubscriptionInterface:
        """
        Start a fresh subscription.

        Raises:
            ObserverError: If the directory cannot be watched
        """
        pass
