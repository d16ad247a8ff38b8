"""JSON Schema definitions and validation utilities for coordination messages.

Schemas:
    - coordination_message.schema.json: Tagged message records and the
      optional routing envelope around them

Usage:
    from zzz_coordinator.schemas import validate_coordination_message

    validate_coordination_message(json.loads(payload))  # Raises on invalid
"""

from __future__ import annotations

import json
from functools import cache
from importlib.resources import files
from typing import Any

import jsonschema

COORDINATION_MESSAGE_SCHEMA = "coordination_message.schema.json"


def _load_schema(name: str) -> dict[str, Any]:
    """Load a JSON schema from the schemas package.

    Args:
        name: Schema filename (e.g., 'coordination_message.schema.json')

    Returns:
        Parsed JSON schema as a dictionary
    """
    schema_text = files("zzz_coordinator.schemas").joinpath(name).read_text()
    result: dict[str, Any] = json.loads(schema_text)
    return result


@cache
def _validator(name: str) -> jsonschema.protocols.Validator:
    schema = _load_schema(name)
    validator_cls = jsonschema.validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def get_coordination_message_schema() -> dict[str, Any]:
    """Get the coordination message schema.

    Returns:
        JSON Schema for inbound and outbound message payloads
    """
    return _load_schema(COORDINATION_MESSAGE_SCHEMA)


def validate_coordination_message(data: Any) -> None:
    """Validate a decoded payload against the coordination message schema.

    Args:
        data: Decoded JSON value

    Raises:
        jsonschema.ValidationError: If validation fails
    """
    error = jsonschema.exceptions.best_match(
        _validator(COORDINATION_MESSAGE_SCHEMA).iter_errors(data)
    )
    if error is not None:
        raise error


__all__ = [
    "COORDINATION_MESSAGE_SCHEMA",
    "get_coordination_message_schema",
    "validate_coordination_message",
]
