"""
Transition guards for the coordinated workflow.

Guards read an artifact through the store and return a pass/fail verdict.
A missing or half-written artifact is "not ready yet" (fail); a store
failure that prevents evaluation raises TransitionGuardError.
"""

from zzz_coordinator.guards.review import ReviewReadyGuard
from zzz_coordinator.guards.todo import ImplementationCompleteGuard, PlanReadyGuard

__all__ = [
    "PlanReadyGuard",
    "ImplementationCompleteGuard",
    "ReviewReadyGuard",
]
