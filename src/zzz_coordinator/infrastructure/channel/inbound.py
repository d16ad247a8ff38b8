"""
Inbound reader: turns newline-delimited JSON on a text stream into events.

Each line is either a coordination message (bare or enveloped) or an
operator command such as ``{"command": "confirm"}``. Undecodable lines are
forwarded as rejections so the coordinator can surface them.
"""

import json
import logging
import sys
import threading
from collections.abc import Callable
from typing import TextIO

from zzz_coordinator.domain.events import (
    MessageReceived,
    MessageRejected,
    OperatorCommand,
    OperatorCommandKind,
    WorkflowEvent,
)
from zzz_coordinator.domain.exceptions import ParseError
from zzz_coordinator.infrastructure.channel.codec import decode_document

logger = logging.getLogger(__name__)


def parse_inbound_line(line: str) -> WorkflowEvent:
    """Classify one inbound line."""
    try:
        data = json.loads(line)
    except json.JSONDecodeError as e:
        # Raw text from a participant is reported, never acted on
        return MessageRejected(payload=line, reason=f"not JSON: {e.msg}")

    if isinstance(data, dict) and "command" in data:
        try:
            return OperatorCommand(OperatorCommandKind(data["command"]))
        except ValueError:
            return MessageRejected(
                payload=line, reason=f"unknown command {data['command']!r}"
            )

    try:
        envelope = decode_document(data)
    except ParseError as e:
        return MessageRejected(payload=line, reason=str(e))
    return MessageReceived(message=envelope.message, sender=envelope.sender)


class InboundReader(threading.Thread):
    """Daemon thread feeding parsed inbound lines to ``sink`` until EOF."""

    def __init__(
        self,
        sink: Callable[[WorkflowEvent], None],
        stream: TextIO | None = None,
    ):
        super().__init__(name="zzz-inbound", daemon=True)
        self._sink = sink
        self._stream = stream if stream is not None else sys.stdin
        self._stopped = threading.Event()

    def stop(self) -> None:
        """Stop after the line currently being read."""
        self._stopped.set()

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    def run(self) -> None:
        for line in self._stream:
            if self._stopped.is_set():
                break
            line = line.strip()
            if not line:
                continue
            event = parse_inbound_line(line)
            logger.debug("Inbound %s", type(event).__name__)
            self._sink(event)
        logger.debug("Inbound stream closed")
