"""
Message channel: role-addressed delivery, endpoints, wire codec and the
inbound reader.
"""

from zzz_coordinator.infrastructure.channel.codec import (
    MessageEnvelope,
    decode_payload,
    encode_envelope,
)
from zzz_coordinator.infrastructure.channel.endpoints import (
    CommandEndpoint,
    InMemoryEndpoint,
    StaticEndpointResolver,
)
from zzz_coordinator.infrastructure.channel.inbound import (
    InboundReader,
    parse_inbound_line,
)
from zzz_coordinator.infrastructure.channel.router import (
    DeliveryResult,
    MessageChannel,
    match_name_to_role,
)

__all__ = [
    "MessageEnvelope",
    "encode_envelope",
    "decode_payload",
    "InMemoryEndpoint",
    "CommandEndpoint",
    "StaticEndpointResolver",
    "InboundReader",
    "parse_inbound_line",
    "MessageChannel",
    "DeliveryResult",
    "match_name_to_role",
]
