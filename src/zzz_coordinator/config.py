"""
Coordinator configuration.

Loaded from a mapping (a parsed JSON file or CLI options) or from ``ZZZ_*``
environment variables, and validated before anything touches the disk.
"""

from __future__ import annotations

import json
import os
import re
import shlex
from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

from zzz_coordinator.domain.exceptions import ConfigError
from zzz_coordinator.domain.models import RetryPolicy

ENV_PREFIX = "ZZZ_"

_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off", ""})

# Task ids name a directory under the base directory
_TASK_ID_PATTERN = re.compile(r"[A-Za-z0-9_-]+")


@dataclass(frozen=True)
class CoordinatorConfig:
    """Options for coordinating one task."""

    task_id: str
    feature_description: str
    base_directory: Path = Path(".zzz")
    overseer_pane: str = "Overseer"
    commander_pane: str = "Commander"
    enable_logging: bool = True
    debounce_seconds: float = 0.3
    operation_timeout: float = 5.0
    max_attempts: int = 3
    retry_base_delay: float = 0.5
    auto_finish: bool = False
    status_broadcasts: bool = True
    archive_on_finish: bool = True
    # Endpoint name -> command receiving payloads on stdin
    endpoints: Mapping[str, tuple[str, ...]] = field(default_factory=dict)

    @property
    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.max_attempts, base_delay=self.retry_base_delay
        )

    @property
    def task_directory(self) -> Path:
        return self.base_directory / f"task-{self.task_id}"

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> CoordinatorConfig:
        """
        Build a validated config from a mapping.

        Raises:
            ConfigError: If a required option is missing or a value is invalid
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration options: {', '.join(unknown)}")

        task_id = validate_task_id(_require_text(data, "task_id"))
        description = _require_text(data, "feature_description")
        config = cls(task_id=task_id, feature_description=description)

        values: dict[str, Any] = {}
        if "base_directory" in data:
            values["base_directory"] = Path(_require_text(data, "base_directory"))
        for name in ("overseer_pane", "commander_pane"):
            if name in data:
                values[name] = _require_text(data, name)
        for name in (
            "enable_logging",
            "auto_finish",
            "status_broadcasts",
            "archive_on_finish",
        ):
            if name in data:
                values[name] = _parse_bool(name, data[name])
        if "debounce_seconds" in data:
            values["debounce_seconds"] = _parse_number(
                "debounce_seconds", data["debounce_seconds"], minimum=0.0
            )
        for name in ("operation_timeout", "retry_base_delay"):
            if name in data:
                values[name] = _parse_number(name, data[name], minimum=0.0)
                if values[name] == 0:
                    raise ConfigError(f"'{name}' must be greater than 0")
        if "max_attempts" in data:
            values["max_attempts"] = _parse_int(data["max_attempts"])
        if "endpoints" in data:
            values["endpoints"] = _parse_endpoints(data["endpoints"])

        if values.get("overseer_pane", config.overseer_pane) == values.get(
            "commander_pane", config.commander_pane
        ):
            raise ConfigError("'overseer_pane' and 'commander_pane' must differ")
        return replace(config, **values)

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        defaults: Mapping[str, Any] | None = None,
    ) -> CoordinatorConfig:
        """
        Build a config from ``ZZZ_<OPTION>`` variables, e.g. ``ZZZ_TASK_ID``.

        Environment values override ``defaults``.
        """
        data: dict[str, Any] = dict(defaults or {})
        data.update(env_options(environ))
        return cls.from_mapping(data)

    @classmethod
    def from_file(cls, path: Path) -> CoordinatorConfig:
        """
        Load a config from a JSON file.

        Raises:
            ConfigError: If the file is missing or invalid
        """
        return cls.from_mapping(load_config_file(path))


def env_options(environ: Mapping[str, str] | None = None) -> dict[str, str]:
    """Options set through ``ZZZ_<OPTION>`` variables."""
    environ = os.environ if environ is None else environ
    options: dict[str, str] = {}
    for f in fields(CoordinatorConfig):
        key = ENV_PREFIX + f.name.upper()
        if key in environ and f.name != "endpoints":
            options[f.name] = environ[key]
    return options


def load_config(
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> CoordinatorConfig:
    """
    Layer config sources: file, then environment, then explicit overrides.

    ``None`` overrides are ignored so unset CLI options fall through.

    Raises:
        ConfigError: If the merged options are invalid
    """
    data: dict[str, Any] = load_config_file(path) if path is not None else {}
    data.update(env_options(environ))
    data.update({k: v for k, v in (overrides or {}).items() if v is not None})
    return CoordinatorConfig.from_mapping(data)


def validate_task_id(task_id: str) -> str:
    """
    Check that ``task_id`` is letters, digits, ``_`` or ``-`` only.

    Raises:
        ConfigError: If the id contains path separators, dots or spaces
    """
    if not _TASK_ID_PATTERN.fullmatch(task_id):
        raise ConfigError(
            "Option 'task_id' may only contain letters, digits, '_' and "
            f"'-', got {task_id!r}"
        )
    return task_id


def load_config_file(path: Path) -> dict[str, Any]:
    """Read a JSON config file into a mapping."""
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    try:
        with open(path) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Expected object in {path}, got {type(data).__name__}")
    return data


def _require_text(data: Mapping[str, Any], name: str) -> str:
    value = data.get(name)
    if isinstance(value, bool) or value is None:
        raise ConfigError(f"Missing required option '{name}'")
    if isinstance(value, int):
        # Task ids are often given as numbers
        value = str(value)
    if isinstance(value, Path):
        value = str(value)
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"Option '{name}' must be a non-empty string")
    return value.strip()


def _parse_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in _TRUE:
        return True
    if isinstance(value, str) and value.strip().lower() in _FALSE:
        return False
    raise ConfigError(f"Option '{name}' must be a boolean, got {value!r}")


def _parse_number(name: str, value: Any, minimum: float) -> float:
    if isinstance(value, bool):
        raise ConfigError(f"Option '{name}' must be a number, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Option '{name}' must be a number, got {value!r}") from e
    if number < minimum:
        raise ConfigError(f"Option '{name}' must be >= {minimum}, got {number}")
    return number


def _parse_int(value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"Option 'max_attempts' must be an integer, got {value!r}")
    try:
        number = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(
            f"Option 'max_attempts' must be an integer, got {value!r}"
        ) from e
    if number < 1:
        raise ConfigError(f"Option 'max_attempts' must be >= 1, got {number}")
    return number


def _parse_endpoints(value: Any) -> dict[str, tuple[str, ...]]:
    if not isinstance(value, Mapping):
        raise ConfigError("Option 'endpoints' must map names to commands")
    endpoints: dict[str, tuple[str, ...]] = {}
    for name, command in value.items():
        argv = shlex.split(command) if isinstance(command, str) else command
        if not isinstance(argv, (list, tuple)) or not argv:
            raise ConfigError(f"Endpoint '{name}' needs a non-empty command")
        endpoints[str(name)] = tuple(str(part) for part in argv)
    return endpoints
