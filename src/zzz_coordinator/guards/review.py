"""Review guard: the review document exists with non-blank content."""

from pathlib import Path

from zzz_coordinator.domain.interfaces import ArtifactStoreInterface, GuardInterface
from zzz_coordinator.domain.models import GuardResult
from zzz_coordinator.guards.base import read_artifact


class ReviewReadyGuard(GuardInterface):
    name = "review_ready"

    def __init__(self, review_path: Path):
        self.review_path = review_path

    def validate(self, store: ArtifactStoreInterface) -> GuardResult:
        content = read_artifact(store, self.review_path, self.name)
        if content is None or not content.strip():
            return GuardResult(passed=False, feedback="Review not written yet")
        return GuardResult(passed=True, feedback="Review written")
