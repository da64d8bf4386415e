"""Peak sampler for high-rate scalar streams (wind gust)."""

from __future__ import annotations

from typing import Any

from skwindy.models._base import safe_float


class PeakSampler:
    """Keeps the maximum of a stream between two resets.

    Unit agnostic; unusable samples (None, NaN, non-numeric) are ignored.

    :meth:`checkpoint` marks the instant a report reads the peak. Samples
    arriving after it are tracked separately and survive the following
    :meth:`reset`, since they belong to the next reporting interval.
    """

    def __init__(self) -> None:
        self._peak = 0.0
        self._since_checkpoint: float | None = None

    def sample(self, value: Any) -> None:
        parsed = safe_float(value)
        if parsed is None:
            return
        if parsed > self._peak:
            self._peak = parsed
        if self._since_checkpoint is not None and parsed > self._since_checkpoint:
            self._since_checkpoint = parsed

    def current_peak(self) -> float:
        return self._peak

    def checkpoint(self) -> None:
        self._since_checkpoint = 0.0

    def reset(self) -> None:
        """Drop samples up to the last checkpoint (all samples if none)."""
        self._peak = self._since_checkpoint or 0.0
        self._since_checkpoint = None
