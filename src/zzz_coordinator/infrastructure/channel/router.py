"""
Role-addressed delivery of coordination messages.

The channel keeps a role -> endpoint name mapping and resolves the name to a
live endpoint on every send, so a participant that reconnects under the same
name is reached without re-registration.
"""

import logging

import jsonschema

from zzz_coordinator.domain.exceptions import DeliveryError, DeliveryFailure
from zzz_coordinator.domain.interfaces import (
    EndpointResolverInterface,
    MessageChannelInterface,
)
from zzz_coordinator.domain.messages import (
    CoordinationMessage,
    DeliveryResult,
    message_to_dict,
)
from zzz_coordinator.domain.models import ParticipantRole
from zzz_coordinator.infrastructure.channel.codec import encode_envelope
from zzz_coordinator.schemas import validate_coordination_message

logger = logging.getLogger(__name__)

NO_ENDPOINT = DeliveryFailure.NO_ENDPOINT
SERIALIZATION_FAILED = DeliveryFailure.SERIALIZATION_FAILED
UNRESPONSIVE = DeliveryFailure.ENDPOINT_UNRESPONSIVE

DEFAULT_SEND_TIMEOUT = 5.0

# Lowercase name fragments identifying each role, checked in order
_ROLE_NAME_PATTERNS: tuple[tuple[ParticipantRole, tuple[str, ...]], ...] = (
    (ParticipantRole.OVERSEER, ("overseer",)),
    (ParticipantRole.COMMANDER, ("commander",)),
    (ParticipantRole.TASK_LIST, ("task list", "tasklist", "task-list", "task_list")),
    (ParticipantRole.REVIEW, ("review",)),
    (ParticipantRole.EDITOR, ("editor",)),
)


def match_name_to_role(name: str) -> ParticipantRole | None:
    """Infer a participant role from an endpoint name such as a pane title."""
    lowered = name.lower()
    for role, fragments in _ROLE_NAME_PATTERNS:
        if any(fragment in lowered for fragment in fragments):
            return role
    return None


class MessageChannel(MessageChannelInterface):
    """
    Targeted send and broadcast over a name -> role mapping.

    Delivery is fire-and-forget: a result only says the endpoint accepted
    the payload, not that the participant acted on it.
    """

    def __init__(
        self,
        resolver: EndpointResolverInterface,
        timeout: float = DEFAULT_SEND_TIMEOUT,
    ):
        """
        Args:
            resolver: Resolves endpoint names to live endpoints
            timeout: Max seconds an endpoint may take to accept a payload
        """
        self._resolver = resolver
        self._timeout = timeout
        self._names: dict[ParticipantRole, str] = {}

    # -------------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------------

    def register(self, name: str, role: ParticipantRole) -> None:
        """
        Map ``role`` to the endpoint ``name``.

        Idempotent. A role has at most one name, so registering a new name
        for a role replaces the old one; a name serves at most one role.
        """
        if self._names.get(role) == name:
            return
        for other, other_name in list(self._names.items()):
            if other_name == name:
                del self._names[other]
        self._names[role] = name
        logger.info("Registered %s as %s", name, role.value)

    def unregister(self, name: str) -> bool:
        """Remove ``name`` from the mapping. Returns False if it was not mapped."""
        for role, mapped in list(self._names.items()):
            if mapped == name:
                del self._names[role]
                logger.info("Unregistered %s (%s)", name, role.value)
                return True
        return False

    def discover(self, names: list[str]) -> dict[str, ParticipantRole]:
        """
        Register every name whose text identifies a role.

        Returns:
            The names that were registered and their roles
        """
        found: dict[str, ParticipantRole] = {}
        for name in names:
            role = match_name_to_role(name)
            if role is not None:
                self.register(name, role)
                found[name] = role
        if not found:
            logger.warning("No participant roles found among %d names", len(names))
        return found

    def registered_roles(self) -> list[ParticipantRole]:
        return [role for role in ParticipantRole if role in self._names]

    def endpoint_name(self, role: ParticipantRole) -> str | None:
        return self._names.get(role)

    # -------------------------------------------------------------------------
    # Delivery
    # -------------------------------------------------------------------------

    def send(
        self, role: ParticipantRole, message: CoordinationMessage
    ) -> DeliveryResult:
        """
        Deliver ``message`` to the endpoint currently mapped to ``role``.

        Never raises for delivery problems; they are returned in the result.
        """
        name = self._names.get(role)
        if name is None:
            return self._failed(role, None, NO_ENDPOINT, "role not mapped")
        endpoint = self._resolver.resolve(name)
        if endpoint is None:
            return self._failed(role, name, NO_ENDPOINT, f"{name} not found")

        try:
            validate_coordination_message(message_to_dict(message))
            payload = encode_envelope(message, target_pane=name)
        except (jsonschema.ValidationError, TypeError, ValueError) as e:
            return self._failed(role, name, SERIALIZATION_FAILED, str(e))

        try:
            endpoint.deliver(payload, self._timeout)
        except (TimeoutError, OSError) as e:
            return self._failed(role, name, UNRESPONSIVE, str(e))

        logger.info("Sent %s to %s (%s)", message.TAG, role.value, name)
        return DeliveryResult(role=role, endpoint_name=name)

    def broadcast(
        self,
        message: CoordinationMessage,
        roles: list[ParticipantRole] | None = None,
    ) -> dict[ParticipantRole, DeliveryResult]:
        """
        Send ``message`` to every mapped role, or to ``roles`` if given.

        Partial failure is expected; every role gets its own result.
        """
        targets = self.registered_roles() if roles is None else roles
        return {role: self.send(role, message) for role in targets}

    def _failed(
        self,
        role: ParticipantRole,
        name: str | None,
        reason: DeliveryFailure,
        detail: str,
    ) -> DeliveryResult:
        error = DeliveryError(role, reason, detail)
        logger.warning("%s (error_kind=%s)", error, error.error_kind.value)
        return DeliveryResult(role=role, endpoint_name=name, error=error)
