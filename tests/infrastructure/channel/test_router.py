"""Tests for MessageChannel registration, discovery and delivery."""

import json

import pytest

from zzz_coordinator.domain.exceptions import DeliveryFailure
from zzz_coordinator.domain.messages import (
    PhaseTransition,
    StartPlanning,
    TaskCompleted,
)
from zzz_coordinator.domain.models import ParticipantRole
from zzz_coordinator.infrastructure.channel import (
    InMemoryEndpoint,
    MessageChannel,
    StaticEndpointResolver,
    match_name_to_role,
)

OVERSEER = ParticipantRole.OVERSEER
COMMANDER = ParticipantRole.COMMANDER


@pytest.fixture
def start_planning() -> StartPlanning:
    return StartPlanning(task_id="42", description="add auth")


class TestMatchNameToRole:
    @pytest.mark.parametrize(
        ("name", "role"),
        [
            ("Overseer", ParticipantRole.OVERSEER),
            ("zzz: COMMANDER pane", ParticipantRole.COMMANDER),
            ("Task List", ParticipantRole.TASK_LIST),
            ("task-list viewer", ParticipantRole.TASK_LIST),
            ("Review", ParticipantRole.REVIEW),
            ("Editor", ParticipantRole.EDITOR),
            ("bash", None),
        ],
    )
    def test_match(self, name: str, role: ParticipantRole | None) -> None:
        assert match_name_to_role(name) is role


class TestRegistration:
    def test_discover_maps_names(self, channel, resolver) -> None:
        found = channel.discover(resolver.names() + ["bash"])

        assert found["Overseer"] is OVERSEER
        assert "bash" not in found
        assert channel.registered_roles() == list(ParticipantRole)

    def test_discover_nothing(self, channel) -> None:
        assert channel.discover(["bash", "vim"]) == {}
        assert channel.registered_roles() == []

    def test_register_is_idempotent(self, channel) -> None:
        channel.register("Overseer", OVERSEER)
        channel.register("Overseer", OVERSEER)

        assert channel.registered_roles() == [OVERSEER]
        assert channel.endpoint_name(OVERSEER) == "Overseer"

    def test_new_name_replaces_old_for_role(self, channel) -> None:
        channel.register("Overseer", OVERSEER)
        channel.register("Overseer 2", OVERSEER)

        assert channel.endpoint_name(OVERSEER) == "Overseer 2"

    def test_name_serves_one_role(self, channel) -> None:
        channel.register("pane-1", OVERSEER)
        channel.register("pane-1", COMMANDER)

        assert channel.registered_roles() == [COMMANDER]

    def test_unregister(self, channel) -> None:
        channel.register("Overseer", OVERSEER)

        assert channel.unregister("Overseer")
        assert not channel.unregister("Overseer")
        assert channel.registered_roles() == []


class TestSend:
    def test_delivers_envelope(self, channel, endpoints, start_planning) -> None:
        channel.register("Overseer", OVERSEER)

        result = channel.send(OVERSEER, start_planning)

        assert result.ok
        assert result.endpoint_name == "Overseer"
        (payload,) = endpoints["Overseer"].payloads
        data = json.loads(payload)
        assert data["target_pane"] == "Overseer"
        assert data["sender"] == "zzz-coordinator"
        assert data["message"] == {
            "type": "StartPlanning",
            "task_id": "42",
            "description": "add auth",
        }

    def test_unmapped_role_has_no_endpoint(self, channel, start_planning) -> None:
        result = channel.send(OVERSEER, start_planning)

        assert not result.ok
        assert result.error.reason is DeliveryFailure.NO_ENDPOINT

    def test_vanished_endpoint(self, channel, resolver, start_planning) -> None:
        channel.register("Overseer", OVERSEER)
        resolver.remove("Overseer")

        result = channel.send(OVERSEER, start_planning)

        assert result.error.reason is DeliveryFailure.NO_ENDPOINT
        assert result.endpoint_name == "Overseer"

    def test_unresponsive_endpoint(self, channel, endpoints, start_planning) -> None:
        channel.register("Overseer", OVERSEER)
        endpoints["Overseer"].responsive = False

        result = channel.send(OVERSEER, start_planning)

        assert result.error.reason is DeliveryFailure.ENDPOINT_UNRESPONSIVE
        assert result.error.retryable

    def test_invalid_message_is_not_serialized(self, channel, endpoints) -> None:
        channel.register("Commander", COMMANDER)

        result = channel.send(COMMANDER, TaskCompleted(task_id="42", task_index=-1))

        assert result.error.reason is DeliveryFailure.SERIALIZATION_FAILED
        assert not result.error.retryable
        assert endpoints["Commander"].payloads == []

    def test_reconnected_endpoint_is_reached(self, channel, resolver, start_planning):
        """Names are resolved per send, so a restarted pane needs no re-register."""
        channel.register("Overseer", OVERSEER)
        replacement = InMemoryEndpoint("Overseer")
        resolver.remove("Overseer")
        resolver.add("Overseer", replacement)

        assert channel.send(OVERSEER, start_planning).ok
        assert len(replacement.payloads) == 1


class TestBroadcast:
    def test_partial_failure(self, endpoints) -> None:
        """Two reachable viewers and one missing give 2 successes, 1 NoEndpoint."""
        resolver = StaticEndpointResolver(
            {"Task List": endpoints["Task List"], "Review": endpoints["Review"]}
        )
        channel = MessageChannel(resolver)
        channel.register("Task List", ParticipantRole.TASK_LIST)
        channel.register("Review", ParticipantRole.REVIEW)
        channel.register("Editor", ParticipantRole.EDITOR)
        message = PhaseTransition("42", "PlanReady", "ImplementationInProgress")

        results = channel.broadcast(message)

        assert set(results) == {
            ParticipantRole.TASK_LIST,
            ParticipantRole.REVIEW,
            ParticipantRole.EDITOR,
        }
        assert results[ParticipantRole.TASK_LIST].ok
        assert results[ParticipantRole.REVIEW].ok
        editor = results[ParticipantRole.EDITOR]
        assert editor.error.reason is DeliveryFailure.NO_ENDPOINT

    def test_broadcast_to_selected_roles(self, channel, resolver, endpoints) -> None:
        channel.discover(resolver.names())
        message = PhaseTransition("42", "Initializing", "PlanningInProgress")

        results = channel.broadcast(message, roles=[ParticipantRole.EDITOR])

        assert list(results) == [ParticipantRole.EDITOR]
        assert endpoints["Overseer"].payloads == []
        assert len(endpoints["Editor"].payloads) == 1
