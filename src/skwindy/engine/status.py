"""One-line human readable reporter status."""

from __future__ import annotations

import logging
from collections.abc import Callable

from skwindy.exceptions import WindyError
from skwindy.state.movement import MovementGuard

_logger = logging.getLogger(__name__)


def describe_error(error: WindyError) -> str:
    return f"{error.code}: {error}"


class StatusBoard:
    """Holds the current status line and pushes changes to ``on_status``.

    Format: ``<message> | Delta: <n>m | Last error: <error>``. The delta part
    appears once a baseline position exists.
    """

    def __init__(
        self,
        guard: MovementGuard | None = None,
        on_status: Callable[[str], None] | None = None,
    ) -> None:
        self._guard = guard
        self._on_status = on_status
        self.message = "Initialized"
        self.is_error = False
        self.last_error = "None"

    def bind(self, guard: MovementGuard) -> None:
        self._guard = guard

    @property
    def text(self) -> str:
        delta = ""
        guard = self._guard
        if guard is not None and guard.baseline is not None:
            delta = f" | Delta: {round(guard.distance_since_baseline())}m"
        return f"{self.message}{delta} | Last error: {self.last_error}"

    def update(self, message: str, *, error: bool = False, last_error: str | None = None) -> None:
        self.message = message
        self.is_error = error
        if last_error is not None:
            self.last_error = last_error
        text = self.text
        _logger.debug("Status: %s", text)
        if self._on_status is not None:
            try:
                self._on_status(text)
            except Exception:
                _logger.debug("on_status callback failed", exc_info=True)

    def fail(self, error: WindyError) -> None:
        self.update(f"Error: {error.code}", error=True, last_error=describe_error(error))
