"""Engine state owned by a single scheduler instance."""

from __future__ import annotations

from dataclasses import dataclass, field

from skwindy.state.movement import MovementGuard
from skwindy.state.peak import PeakSampler
from skwindy.state.store import ReporterState


@dataclass
class EngineState:
    """Mutable state shared by the scheduler and the orchestrator.

    Holds the movement guard, the gust peak and the next run time. There is
    no module-level state; each reporter owns one of these.
    """

    guard: MovementGuard = field(default_factory=MovementGuard)
    peak: PeakSampler = field(default_factory=PeakSampler)
    next_run_at: int | None = None

    @classmethod
    def from_record(cls, record: ReporterState) -> EngineState:
        state = cls(next_run_at=record.next_run_at)
        state.guard.restore(
            record.baseline_position,
            record.accumulated_distance,
            synced=record.baseline_synced,
        )
        return state

    def to_record(self) -> ReporterState:
        return ReporterState(
            baseline_position=self.guard.baseline,
            accumulated_distance=self.guard.distance_since_baseline(),
            next_run_at=self.next_run_at,
            baseline_synced=self.guard.synced,
        )
