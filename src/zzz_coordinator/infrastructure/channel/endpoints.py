"""
Endpoint adapters: where an encoded message physically goes.
"""

import logging
import subprocess
import threading
from collections.abc import Sequence

from zzz_coordinator.domain.interfaces import (
    EndpointInterface,
    EndpointResolverInterface,
)

logger = logging.getLogger(__name__)


class InMemoryEndpoint(EndpointInterface):
    """Records delivered payloads. Useful for testing."""

    def __init__(self, name: str = "memory") -> None:
        self.name = name
        self.payloads: list[str] = []
        self.responsive = True

    def deliver(self, payload: str, timeout: float) -> None:
        if not self.responsive:
            raise TimeoutError(f"{self.name} did not respond within {timeout}s")
        self.payloads.append(payload)


class CommandEndpoint(EndpointInterface):
    """
    Pipes each payload, newline-terminated, to a local command's stdin.

    The command is started once per delivery, so a participant that is
    restarted between sends needs no re-registration.
    """

    def __init__(self, argv: Sequence[str]):
        if not argv:
            raise ValueError("CommandEndpoint needs a command")
        self._argv = list(argv)

    def deliver(self, payload: str, timeout: float) -> None:
        try:
            subprocess.run(
                self._argv,
                input=payload + "\n",
                text=True,
                capture_output=True,
                timeout=timeout,
                check=True,
            )
        except subprocess.TimeoutExpired as e:
            raise TimeoutError(f"{self._argv[0]} timed out after {timeout}s") from e
        except subprocess.CalledProcessError as e:
            raise OSError(
                f"{self._argv[0]} exited with {e.returncode}: {e.stderr.strip()}"
            ) from e


class StaticEndpointResolver(EndpointResolverInterface):
    """Name to endpoint table, updated as participants come and go."""

    def __init__(self, endpoints: dict[str, EndpointInterface] | None = None):
        self._endpoints: dict[str, EndpointInterface] = dict(endpoints or {})
        self._lock = threading.Lock()

    def add(self, name: str, endpoint: EndpointInterface) -> None:
        with self._lock:
            self._endpoints[name] = endpoint
        logger.debug("Endpoint %s available", name)

    def remove(self, name: str) -> None:
        with self._lock:
            self._endpoints.pop(name, None)
        logger.debug("Endpoint %s gone", name)

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._endpoints)

    def resolve(self, name: str) -> EndpointInterface | None:
        with self._lock:
            return self._endpoints.get(name)
