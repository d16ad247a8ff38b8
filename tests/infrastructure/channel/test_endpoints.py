"""Tests for endpoint adapters and the static resolver."""

import sys

import pytest

from zzz_coordinator.infrastructure.channel import (
    CommandEndpoint,
    InMemoryEndpoint,
    StaticEndpointResolver,
)


class TestInMemoryEndpoint:
    def test_records_payloads(self) -> None:
        endpoint = InMemoryEndpoint("Overseer")

        endpoint.deliver("{}", timeout=1.0)

        assert endpoint.payloads == ["{}"]

    def test_unresponsive_times_out(self) -> None:
        endpoint = InMemoryEndpoint()
        endpoint.responsive = False

        with pytest.raises(TimeoutError):
            endpoint.deliver("{}", timeout=1.0)


class TestCommandEndpoint:
    def test_pipes_payload_to_stdin(self, tmp_path) -> None:
        out = tmp_path / "received.txt"
        script = f"import sys; open({str(out)!r}, 'a').write(sys.stdin.read())"
        endpoint = CommandEndpoint([sys.executable, "-c", script])

        endpoint.deliver('{"type": "StartReview"}', timeout=10.0)

        assert out.read_text() == '{"type": "StartReview"}\n'

    def test_failing_command_raises_oserror(self) -> None:
        endpoint = CommandEndpoint([sys.executable, "-c", "raise SystemExit(3)"])

        with pytest.raises(OSError, match="exited with 3"):
            endpoint.deliver("{}", timeout=10.0)

    def test_slow_command_times_out(self) -> None:
        endpoint = CommandEndpoint([sys.executable, "-c", "import time; time.sleep(5)"])

        with pytest.raises(TimeoutError):
            endpoint.deliver("{}", timeout=0.2)

    def test_empty_command_rejected(self) -> None:
        with pytest.raises(ValueError):
            CommandEndpoint([])


class TestStaticEndpointResolver:
    def test_add_resolve_remove(self) -> None:
        resolver = StaticEndpointResolver()
        endpoint = InMemoryEndpoint("Review")

        resolver.add("Review", endpoint)

        assert resolver.resolve("Review") is endpoint
        assert resolver.names() == ["Review"]

        resolver.remove("Review")

        assert resolver.resolve("Review") is None
