"""Fixtures describing the coordinator's package layers for PyTestArch."""

import os

import pytest
from pytestarch import (
    EvaluableArchitecture,
    LayeredArchitecture,
    get_evaluable_architecture,
)

_SRC_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "..", "src"))


@pytest.fixture(scope="session")
def evaluable() -> EvaluableArchitecture:
    """Import graph of ``src/zzz_coordinator``."""
    return get_evaluable_architecture(
        _SRC_DIR, os.path.join(_SRC_DIR, "zzz_coordinator")
    )


@pytest.fixture(scope="session")
def layers() -> LayeredArchitecture:
    """
    The coordinator's layers, innermost first.

    - domain: phases, messages, the state machine and the ports
    - guards: transition checks that read artifacts through the store port
    - application: the coordination loop and its queues
    - infrastructure: file store, watchdog observer, channel and endpoints

    Module names are relative to ``src/``, hence the ``src.`` prefix.
    """
    return (
        LayeredArchitecture()
        .layer("domain")
        .containing_modules(["src.zzz_coordinator.domain"])
        .layer("guards")
        .containing_modules(["src.zzz_coordinator.guards"])
        .layer("application")
        .containing_modules(["src.zzz_coordinator.application"])
        .layer("infrastructure")
        .containing_modules(["src.zzz_coordinator.infrastructure"])
    )
