"""
Wiring of concrete adapters into a coordinator.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TextIO

from zzz_coordinator.application import Coordinator
from zzz_coordinator.config import CoordinatorConfig
from zzz_coordinator.domain.interfaces import (
    ArtifactStoreInterface,
    EndpointInterface,
)
from zzz_coordinator.domain.task import TaskLayout
from zzz_coordinator.infrastructure.channel import (
    CommandEndpoint,
    InboundReader,
    MessageChannel,
    StaticEndpointResolver,
)
from zzz_coordinator.infrastructure.observer import FileObserver
from zzz_coordinator.infrastructure.persistence import AtomicFileStore


def build_resolver(
    config: CoordinatorConfig,
    extra: dict[str, EndpointInterface] | None = None,
) -> StaticEndpointResolver:
    """Resolver holding a command endpoint for every configured endpoint."""
    resolver = StaticEndpointResolver()
    for name, argv in config.endpoints.items():
        resolver.add(name, CommandEndpoint(argv))
    for name, endpoint in (extra or {}).items():
        resolver.add(name, endpoint)
    return resolver


def build_coordinator(
    config: CoordinatorConfig,
    store: ArtifactStoreInterface | None = None,
    resolver: StaticEndpointResolver | None = None,
    watch: bool = True,
    before_archive: Callable[[], None] | None = None,
) -> Coordinator:
    """
    Build a coordinator from a validated config.

    Args:
        config: Coordinator options
        store: Artifact store (filesystem store under the base directory if None)
        resolver: Endpoint table (built from ``config.endpoints`` if None)
        watch: Watch the task directory for artifact changes
        before_archive: Called right before the task directory is archived
    """
    store = store or AtomicFileStore(
        config.base_directory, lock_timeout=config.operation_timeout
    )
    resolver = resolver or build_resolver(config)
    channel = MessageChannel(resolver, timeout=config.operation_timeout)

    def observer_factory(layout: TaskLayout) -> FileObserver:
        return FileObserver(
            layout.task_dir, layout.watched_filenames, debounce=config.debounce_seconds
        )

    return Coordinator(
        config,
        store,
        channel,
        observer_factory=observer_factory if watch else None,
        participant_names=resolver.names(),
        before_archive=before_archive,
    )


def attach_inbound(
    coordinator: Coordinator, stream: TextIO | None = None
) -> InboundReader:
    """
    Start feeding messages and operator commands from ``stream`` (stdin).

    The reader is stopped when the coordinator loop exits.
    """
    reader = InboundReader(coordinator.submit, stream)
    coordinator.on_stop(reader.stop)
    reader.start()
    return reader
