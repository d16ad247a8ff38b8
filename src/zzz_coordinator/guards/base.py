"""Shared artifact reading for guards."""

from pathlib import Path

from zzz_coordinator.domain.exceptions import (
    ParseError,
    StoreError,
    StoreErrorKind,
    TransitionGuardError,
)
from zzz_coordinator.domain.interfaces import ArtifactStoreInterface


def read_artifact(
    store: ArtifactStoreInterface, path: Path, guard_name: str
) -> str | None:
    """
    Read an artifact for guard evaluation.

    Returns:
        The content, or None if the artifact is missing or not valid text

    Raises:
        TransitionGuardError: If the store failed for any other reason
    """
    try:
        return store.read(path)
    except ParseError:
        return None
    except StoreError as e:
        if e.kind is StoreErrorKind.NOT_FOUND:
            return None
        raise TransitionGuardError(guard_name, e) from e
