"""Tests for inbound line parsing and the reader thread."""

import io

from zzz_coordinator.domain.events import (
    MessageReceived,
    MessageRejected,
    OperatorCommand,
    OperatorCommandKind,
)
from zzz_coordinator.domain.messages import PlanReady, ReviewReady
from zzz_coordinator.infrastructure.channel import (
    InboundReader,
    encode_envelope,
    parse_inbound_line,
)


class TestParseInboundLine:
    def test_envelope_becomes_message_received(self) -> None:
        line = encode_envelope(PlanReady("42", "todo-list.md"), None, sender="Overseer")

        event = parse_inbound_line(line)

        assert event == MessageReceived(PlanReady("42", "todo-list.md"), "Overseer")

    def test_bare_record(self) -> None:
        event = parse_inbound_line(
            '{"type": "ReviewReady", "task_id": "42", "review_path": "review.md"}'
        )

        assert isinstance(event, MessageReceived)
        assert event.message == ReviewReady("42", "review.md")

    def test_operator_commands(self) -> None:
        assert parse_inbound_line('{"command": "confirm"}') == OperatorCommand(
            OperatorCommandKind.CONFIRM
        )
        assert parse_inbound_line('{"command": "reset"}') == OperatorCommand(
            OperatorCommandKind.RESET
        )

    def test_unknown_command_is_rejected(self) -> None:
        event = parse_inbound_line('{"command": "explode"}')

        assert isinstance(event, MessageRejected)
        assert "explode" in event.reason

    def test_raw_text_is_rejected(self) -> None:
        event = parse_inbound_line("the plan is ready!")

        assert isinstance(event, MessageRejected)
        assert event.payload == "the plan is ready!"

    def test_invalid_message_is_rejected(self) -> None:
        event = parse_inbound_line('{"type": "PlanReady", "task_id": "42"}')

        assert isinstance(event, MessageRejected)


class TestInboundReader:
    def test_feeds_events_until_eof(self) -> None:
        stream = io.StringIO(
            '{"command": "confirm"}\n'
            "\n"
            "garbage\n"
            '{"type": "StartReview", "task_id": "42"}\n'
        )
        received = []

        reader = InboundReader(received.append, stream)
        reader.start()
        reader.join(timeout=5.0)

        assert not reader.is_alive()
        assert [type(e).__name__ for e in received] == [
            "OperatorCommand",
            "MessageRejected",
            "MessageReceived",
        ]

    def test_stop_before_reading(self) -> None:
        received = []
        reader = InboundReader(received.append, io.StringIO('{"command": "reset"}\n'))

        reader.stop()
        reader.run()

        assert received == []
