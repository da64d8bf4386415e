"""Reporting engine: scheduler, two-phase orchestrator and status line."""

from skwindy.engine.orchestrator import ReportingOrchestrator
from skwindy.engine.results import CycleResult, PhaseOutcome, PhaseResult
from skwindy.engine.scheduler import Scheduler, SchedulerPhase, compute_next_run_at, initial_delay_ms
from skwindy.engine.status import StatusBoard

__all__ = [
    "CycleResult",
    "PhaseOutcome",
    "PhaseResult",
    "ReportingOrchestrator",
    "Scheduler",
    "SchedulerPhase",
    "StatusBoard",
    "compute_next_run_at",
    "initial_delay_ms",
]
