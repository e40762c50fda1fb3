"""Technician auto-assignment policies.

A policy picks zero or one technician for an auto-generated ticket. The
scheduler only depends on the ``select`` call, so skill- or
workload-aware matching can replace these without touching it.
"""

import random
from typing import Protocol, Sequence

from pm_scheduler.config import Settings
from pm_scheduler.schemas.maintenance import Asset, Technician


def active_technicians(technicians: Sequence[Technician]) -> list[Technician]:
    return [t for t in technicians if t.status == "active"]


class AssignmentStrategy(Protocol):
    def select(
        self, asset: Asset | None, technicians: Sequence[Technician]
    ) -> Technician | None: ...


class RandomAssignment:
    """Uniform random choice among active technicians."""

    def __init__(self, rng: random.Random | None = None):
        self._rng = rng or random.Random()

    def select(
        self, asset: Asset | None, technicians: Sequence[Technician]
    ) -> Technician | None:
        candidates = active_technicians(technicians)
        if not candidates:
            return None
        return self._rng.choice(candidates)


class RoundRobinAssignment:
    """Cycles through active technicians in id order, one ticket each."""

    def __init__(self):
        self._last_id: str | None = None

    def select(
        self, asset: Asset | None, technicians: Sequence[Technician]
    ) -> Technician | None:
        candidates = sorted(active_technicians(technicians), key=lambda t: t.id)
        if not candidates:
            return None
        # First technician after the one picked last time, wrapping around
        chosen = next(
            (t for t in candidates if self._last_id is not None and t.id > self._last_id),
            candidates[0],
        )
        self._last_id = chosen.id
        return chosen


def get_assignment_strategy(settings: Settings) -> AssignmentStrategy | None:
    """Build the configured policy; None when auto-assignment is off."""
    if not settings.AUTO_ASSIGN_ENABLED:
        return None
    if settings.ASSIGNMENT_POLICY == "round_robin":
        return RoundRobinAssignment()
    return RandomAssignment()
