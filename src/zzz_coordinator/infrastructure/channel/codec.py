"""
JSON wire format for coordination messages.

Outbound messages are wrapped in an envelope naming the target and sender.
Inbound payloads may be an envelope or a bare tagged record, the form older
participants still send.
"""

import json
import time
from dataclasses import dataclass
from typing import Any

import jsonschema

from zzz_coordinator.domain.exceptions import ParseError
from zzz_coordinator.domain.messages import (
    CoordinationMessage,
    message_from_dict,
    message_to_dict,
)
from zzz_coordinator.schemas import validate_coordination_message

COORDINATOR_SENDER = "zzz-coordinator"


@dataclass(frozen=True)
class MessageEnvelope:
    """Routing metadata around a coordination message."""

    message: CoordinationMessage
    sender: str = "unknown"
    target_pane: str | None = None  # None means broadcast
    timestamp: int = 0


def encode_envelope(
    message: CoordinationMessage,
    target_pane: str | None,
    sender: str = COORDINATOR_SENDER,
) -> str:
    """Encode ``message`` wrapped in an envelope stamped with the current time."""
    return json.dumps(
        {
            "target_pane": target_pane,
            "sender": sender,
            "timestamp": int(time.time()),
            "message": message_to_dict(message),
        },
        sort_keys=True,
    )


def decode_document(data: Any) -> MessageEnvelope:
    """
    Decode an already-parsed JSON value.

    Raises:
        ParseError: If the value is neither an envelope nor a tagged record
    """
    try:
        validate_coordination_message(data)
    except jsonschema.ValidationError as e:
        raise ParseError(f"Invalid coordination message: {e.message}") from e

    if "message" in data:
        return MessageEnvelope(
            message=message_from_dict(data["message"]),
            sender=data.get("sender", "unknown"),
            target_pane=data.get("target_pane"),
            timestamp=int(data.get("timestamp", 0)),
        )
    return MessageEnvelope(message=message_from_dict(data))


def decode_payload(payload: str) -> MessageEnvelope:
    """
    Decode an inbound payload.

    Args:
        payload: Raw JSON text

    Returns:
        The envelope; bare records get an envelope with an unknown sender

    Raises:
        ParseError: If the payload is not JSON or not a valid message
    """
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        raise ParseError(f"Payload is not JSON: {e.msg}") from e
    return decode_document(data)
