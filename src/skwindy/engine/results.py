"""Typed outcomes of a reporting cycle."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from skwindy.exceptions import WindyError, WindyRateLimitError
from skwindy.models.observation import ObservationSnapshot
from skwindy.models.position import Position


class PhaseOutcome(StrEnum):
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class PhaseResult:
    """Outcome of one submission phase.

    ``error`` explains a FAILED phase and, for SKIPPED, why it was skipped
    (``NoFixAvailable``, ``NoSensorData``) or ``None`` if it simply was not due.
    """

    outcome: PhaseOutcome
    error: WindyError | None = None

    @classmethod
    def success(cls) -> PhaseResult:
        return cls(PhaseOutcome.SUCCESS)

    @classmethod
    def skipped(cls, reason: WindyError | None = None) -> PhaseResult:
        return cls(PhaseOutcome.SKIPPED, reason)

    @classmethod
    def failed(cls, error: WindyError) -> PhaseResult:
        return cls(PhaseOutcome.FAILED, error)

    @property
    def ok(self) -> bool:
        return self.outcome is PhaseOutcome.SUCCESS

    @property
    def retry_after_ms(self) -> int | None:
        if isinstance(self.error, WindyRateLimitError):
            return self.error.retry_after_ms
        return None


@dataclass(frozen=True, slots=True)
class CycleResult:
    """Everything a scheduler needs to know about a finished cycle."""

    metadata: PhaseResult
    observation: PhaseResult
    snapshot: ObservationSnapshot
    position: Position | None = None

    @property
    def retry_after_ms(self) -> int | None:
        """Largest rate-limit window announced by either phase."""
        windows = [w for w in (self.metadata.retry_after_ms, self.observation.retry_after_ms) if w is not None]
        return max(windows) if windows else None
