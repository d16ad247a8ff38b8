"""Shared pytest fixtures for zzz_coordinator tests."""

import logging

import pytest

from zzz_coordinator.application import Coordinator
from zzz_coordinator.config import CoordinatorConfig
from zzz_coordinator.domain.task import Task, TaskLayout
from zzz_coordinator.infrastructure.channel import (
    InMemoryEndpoint,
    MessageChannel,
    StaticEndpointResolver,
)
from zzz_coordinator.infrastructure.persistence import InMemoryArtifactStore
from zzz_coordinator.logging_setup import PACKAGE_LOGGER, teardown_logging

PARTICIPANT_NAMES = ("Overseer", "Commander", "Task List", "Review", "Editor")


@pytest.fixture
def config() -> CoordinatorConfig:
    """Config for task 42 with fast retries and no archiving."""
    return CoordinatorConfig(
        task_id="42",
        feature_description="add auth",
        retry_base_delay=0.01,
        archive_on_finish=False,
    )


@pytest.fixture
def task() -> Task:
    return Task(task_id="42", description="add auth")


@pytest.fixture
def memory_store() -> InMemoryArtifactStore:
    """In-memory store rooted at .zzz."""
    return InMemoryArtifactStore(".zzz")


@pytest.fixture
def layout(memory_store: InMemoryArtifactStore) -> TaskLayout:
    """Layout of task 42, with its directory already created."""
    return memory_store.ensure_directory("42")


@pytest.fixture
def endpoints() -> dict[str, InMemoryEndpoint]:
    """One recording endpoint per participant pane."""
    return {name: InMemoryEndpoint(name) for name in PARTICIPANT_NAMES}


@pytest.fixture
def resolver(endpoints: dict[str, InMemoryEndpoint]) -> StaticEndpointResolver:
    return StaticEndpointResolver(dict(endpoints))


@pytest.fixture
def channel(resolver: StaticEndpointResolver) -> MessageChannel:
    return MessageChannel(resolver, timeout=1.0)


@pytest.fixture
def coordinator(
    config: CoordinatorConfig,
    memory_store: InMemoryArtifactStore,
    channel: MessageChannel,
    resolver: StaticEndpointResolver,
) -> Coordinator:
    """Coordinator without an observer; tests feed events directly."""
    return Coordinator(
        config, memory_store, channel, participant_names=resolver.names()
    )


@pytest.fixture(autouse=True)
def _restore_package_logger():
    """Undo setup_logging() so caplog keeps seeing package records."""
    yield
    logger = logging.getLogger(PACKAGE_LOGGER)
    teardown_logging(logger)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
