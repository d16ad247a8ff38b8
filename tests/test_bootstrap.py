"""End-to-end tests: real filesystem store, real watcher, in-memory endpoints."""

import io
import threading
import time

import pytest

from zzz_coordinator.bootstrap import attach_inbound, build_coordinator, build_resolver
from zzz_coordinator.config import CoordinatorConfig
from zzz_coordinator.domain.models import WorkflowPhase
from zzz_coordinator.infrastructure.channel import (
    CommandEndpoint,
    InMemoryEndpoint,
    decode_payload,
)


def _wait_for(condition, timeout: float = 10.0) -> None:
    deadline = time.monotonic() + timeout
    while not condition():
        if time.monotonic() > deadline:
            pytest.fail("condition not met in time")
        time.sleep(0.05)


def _tags(endpoint: InMemoryEndpoint) -> list[str]:
    return [decode_payload(p).message.TAG for p in endpoint.payloads]


class TestBuildResolver:
    def test_configured_and_extra_endpoints(self) -> None:
        config = CoordinatorConfig(
            "1", "x", endpoints={"Overseer": ("cat",), "Commander": ("cat",)}
        )
        extra = InMemoryEndpoint("Review")

        resolver = build_resolver(config, extra={"Review": extra})

        assert resolver.names() == ["Commander", "Overseer", "Review"]
        assert isinstance(resolver.resolve("Overseer"), CommandEndpoint)
        assert resolver.resolve("Review") is extra


class TestAttachInbound:
    def test_reader_is_stopped_when_the_loop_exits(self, tmp_path) -> None:
        config = CoordinatorConfig(
            "42",
            "add auth",
            base_directory=tmp_path / ".zzz",
            archive_on_finish=False,
        )
        extra = {name: InMemoryEndpoint(name) for name in ("Overseer", "Commander")}
        coordinator = build_coordinator(
            config, resolver=build_resolver(config, extra=extra), watch=False
        )
        coordinator.start()
        reader = attach_inbound(coordinator, io.StringIO(""))
        reader.join(timeout=5.0)
        coordinator.stop()

        assert coordinator.run() is WorkflowPhase.PLANNING_IN_PROGRESS
        assert reader.stopped
        assert _tags(extra["Overseer"]) == ["StartPlanning"]


@pytest.mark.slow
class TestEndToEnd:
    def test_task_runs_to_archive(self, tmp_path) -> None:
        config = CoordinatorConfig(
            task_id="42",
            feature_description="add auth",
            base_directory=tmp_path / ".zzz",
            debounce_seconds=0.05,
        )
        endpoints = {
            name: InMemoryEndpoint(name) for name in ("Overseer", "Commander")
        }
        resolver = build_resolver(config, extra=dict(endpoints))
        coordinator = build_coordinator(config, resolver=resolver)
        layout = coordinator.start().layout
        result: list[WorkflowPhase] = []
        loop = threading.Thread(target=lambda: result.append(coordinator.run()))
        loop.start()
        try:
            _wait_for(lambda: _tags(endpoints["Overseer"]) == ["StartPlanning"])

            layout.todo_list.write_text("- [ ] login\n- [ ] logout\n")
            _wait_for(lambda: "StartImplementation" in _tags(endpoints["Commander"]))

            layout.todo_list.write_text("- [x] login\n- [x] logout\n")
            _wait_for(lambda: "StartReview" in _tags(endpoints["Overseer"]))

            layout.review.write_text("Rename the session helper.\n")
            _wait_for(lambda: "ReviewReady" in _tags(endpoints["Commander"]))

            attach_inbound(coordinator, io.StringIO('{"command": "confirm"}\n'))
            loop.join(timeout=10.0)
        finally:
            if loop.is_alive():
                coordinator.stop()
                loop.join(timeout=5.0)

        assert result == [WorkflowPhase.FINISHED]
        assert _tags(endpoints["Commander"])[-1] == "ApplyReviewSuggestions"
        assert coordinator.archived_to == config.base_directory / "archive" / "task-42"
        assert (coordinator.archived_to / "logs" / "overseer.log").read_text()
        assert not layout.task_dir.exists()
