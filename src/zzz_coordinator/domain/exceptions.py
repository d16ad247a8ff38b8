"""
Domain exceptions for the task coordinator.

Each exception carries the ``ErrorKind`` it is reported under so the
coordinator can log recovered errors uniformly.
"""

from enum import Enum
from typing import TYPE_CHECKING

from zzz_coordinator.domain.models import ErrorKind

if TYPE_CHECKING:
    from zzz_coordinator.domain.models import ParticipantRole


class CoordinatorError(Exception):
    """Base class for all coordinator errors."""

    error_kind: ErrorKind = ErrorKind.IO


class StoreErrorKind(Enum):
    """Why a file store operation failed."""

    NOT_FOUND = "NotFound"
    PERMISSION_DENIED = "PermissionDenied"
    DISK_FULL = "DiskFull"
    NOT_A_DIRECTORY = "NotADirectory"
    TIMEOUT = "Timeout"
    IO = "IOError"


class StoreError(CoordinatorError):
    """Raised when the atomic file store cannot complete an operation.

    Never retried inside the store; the caller decides on retry.
    """

    error_kind = ErrorKind.IO

    def __init__(self, kind: StoreErrorKind, path: str, detail: str = ""):
        """
        Args:
            kind: Classified failure cause
            path: The path the operation targeted
            detail: Underlying OS error text
        """
        message = f"{kind.value}: {path}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.kind = kind
        self.path = path


class ObserverError(CoordinatorError):
    """Raised when a directory can no longer be watched.

    Terminal: the observer must be restarted externally.
    """

    error_kind = ErrorKind.OBSERVER


class DeliveryFailure(Enum):
    """Why a message could not be delivered."""

    NO_ENDPOINT = "NoEndpoint"
    ENDPOINT_UNRESPONSIVE = "EndpointUnresponsive"
    SERIALIZATION_FAILED = "SerializationFailed"


class DeliveryError(CoordinatorError):
    """A message could not be delivered to a role's endpoint."""

    error_kind = ErrorKind.DELIVERY

    def __init__(
        self, role: "ParticipantRole", reason: DeliveryFailure, detail: str = ""
    ):
        message = f"Delivery to {role.value} failed: {reason.value}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.role = role
        self.reason = reason

    @property
    def retryable(self) -> bool:
        return self.reason is not DeliveryFailure.SERIALIZATION_FAILED


class ParseError(CoordinatorError):
    """Artifact or message content is malformed.

    Treated as "not yet ready", never fatal.
    """

    error_kind = ErrorKind.PARSE


class ConfigError(CoordinatorError):
    """A required option is missing or invalid. Fatal at startup."""

    error_kind = ErrorKind.CONFIG


class TransitionGuardError(CoordinatorError):
    """A guard condition could not be evaluated.

    The phase stays unchanged and the guard is re-evaluated on the next
    relevant event.
    """

    error_kind = ErrorKind.TRANSITION_GUARD

    def __init__(self, guard_name: str, cause: Exception):
        super().__init__(f"Guard '{guard_name}' could not be evaluated: {cause}")
        self.guard_name = guard_name
        self.cause = cause
