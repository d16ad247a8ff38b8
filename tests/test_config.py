"""Tests for CoordinatorConfig loading and validation."""

import json
from pathlib import Path

import pytest

from zzz_coordinator.config import CoordinatorConfig, env_options, load_config
from zzz_coordinator.domain.exceptions import ConfigError


class TestFromMapping:
    def test_defaults(self) -> None:
        config = CoordinatorConfig.from_mapping(
            {"task_id": "42", "feature_description": "add auth"}
        )

        assert config.base_directory == Path(".zzz")
        assert config.overseer_pane == "Overseer"
        assert config.commander_pane == "Commander"
        assert config.enable_logging
        assert config.debounce_seconds == 0.3
        assert config.task_directory == Path(".zzz/task-42")

    def test_integer_task_id(self) -> None:
        config = CoordinatorConfig.from_mapping(
            {"task_id": 42, "feature_description": "add auth"}
        )

        assert config.task_id == "42"

    @pytest.mark.parametrize(
        "data",
        [
            {"feature_description": "x"},
            {"task_id": "42"},
            {"task_id": "  ", "feature_description": "x"},
            {"task_id": True, "feature_description": "x"},
        ],
    )
    def test_missing_required(self, data) -> None:
        with pytest.raises(ConfigError):
            CoordinatorConfig.from_mapping(data)

    @pytest.mark.parametrize(
        "task_id",
        ["x/../../../escaped", "..", ".", "a/b", "a\\b", "task 42", "4.2"],
    )
    def test_task_id_must_be_a_plain_name(self, task_id) -> None:
        with pytest.raises(ConfigError, match="task_id"):
            CoordinatorConfig.from_mapping(
                {"task_id": task_id, "feature_description": "x"}
            )

    def test_task_id_stays_inside_base_directory(self, tmp_path) -> None:
        config = CoordinatorConfig.from_mapping(
            {
                "task_id": "feature_auth-2",
                "feature_description": "x",
                "base_directory": str(tmp_path / ".zzz"),
            }
        )

        assert config.task_directory.parent == tmp_path / ".zzz"
        assert config.task_directory.name == "task-feature_auth-2"

    @pytest.mark.parametrize(
        ("option", "value"),
        [
            ("debounce_seconds", -1),
            ("operation_timeout", 0),
            ("retry_base_delay", "soon"),
            ("max_attempts", 0),
            ("max_attempts", True),
            ("enable_logging", "maybe"),
            ("endpoints", ["Overseer"]),
            ("colour", "blue"),
        ],
    )
    def test_invalid_values(self, option, value) -> None:
        with pytest.raises(ConfigError):
            CoordinatorConfig.from_mapping(
                {"task_id": "1", "feature_description": "x", option: value}
            )

    def test_panes_must_differ(self) -> None:
        with pytest.raises(ConfigError, match="must differ"):
            CoordinatorConfig.from_mapping(
                {
                    "task_id": "1",
                    "feature_description": "x",
                    "overseer_pane": "Main",
                    "commander_pane": "Main",
                }
            )

    def test_endpoints_are_split(self) -> None:
        config = CoordinatorConfig.from_mapping(
            {
                "task_id": "1",
                "feature_description": "x",
                "endpoints": {"Overseer": "tee -a '/tmp/over seer.log'"},
            }
        )

        assert config.endpoints == {"Overseer": ("tee", "-a", "/tmp/over seer.log")}

    def test_retry_policy(self) -> None:
        config = CoordinatorConfig("1", "x", max_attempts=5, retry_base_delay=0.1)

        assert config.retry_policy.max_attempts == 5
        assert config.retry_policy.base_delay == 0.1


class TestEnvironment:
    def test_env_options(self) -> None:
        environ = {
            "ZZZ_TASK_ID": "7",
            "ZZZ_AUTO_FINISH": "yes",
            "ZZZ_ENDPOINTS": "ignored",
            "OTHER": "x",
        }

        assert env_options(environ) == {"task_id": "7", "auto_finish": "yes"}

    def test_from_env(self) -> None:
        config = CoordinatorConfig.from_env(
            {"ZZZ_TASK_ID": "7", "ZZZ_ENABLE_LOGGING": "false"},
            defaults={"feature_description": "demo", "task_id": "1"},
        )

        assert config.task_id == "7"
        assert not config.enable_logging


class TestLoadConfig:
    def test_layering(self, tmp_path) -> None:
        """File < environment < explicit overrides; None overrides fall through."""
        path = tmp_path / "zzz.json"
        path.write_text(
            json.dumps(
                {"task_id": "1", "feature_description": "from file", "max_attempts": 5}
            )
        )

        config = load_config(
            path,
            environ={"ZZZ_TASK_ID": "2", "ZZZ_MAX_ATTEMPTS": "4"},
            overrides={"max_attempts": 2, "feature_description": None},
        )

        assert config.task_id == "2"
        assert config.feature_description == "from file"
        assert config.max_attempts == 2

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            CoordinatorConfig.from_file(tmp_path / "absent.json")

    def test_invalid_json(self, tmp_path) -> None:
        path = tmp_path / "zzz.json"
        path.write_text("{")

        with pytest.raises(ConfigError, match="Invalid JSON"):
            load_config(path, environ={})

    def test_non_object(self, tmp_path) -> None:
        path = tmp_path / "zzz.json"
        path.write_text("[]")

        with pytest.raises(ConfigError, match="Expected object"):
            load_config(path, environ={})
