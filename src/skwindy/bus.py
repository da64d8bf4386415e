"""Sensor bus interface.

The reporter reads current values by Signal K path and subscribes to the
position and gust streams. Callbacks are always invoked on the event loop
thread, never concurrently with the scheduler.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

_logger = logging.getLogger(__name__)

UpdateCallback = Callable[[str, Any], None]


class SensorBus(Protocol):
    """Structural interface for a live data bus."""

    def get_current_value(self, path: str) -> Any | None:
        ...

    def subscribe(self, path: str, period_ms: int, on_update: UpdateCallback) -> None:
        ...


@dataclass(frozen=True)
class Subscription:
    path: str
    period_ms: int
    on_update: UpdateCallback


def dispatch_update(subscriptions: list[Subscription], path: str, value: Any) -> None:
    """Deliver ``(path, value)`` to every subscriber of *path*.

    A failing callback is logged and does not stop delivery to the others.
    """
    for sub in subscriptions:
        if sub.path != path:
            continue
        try:
            sub.on_update(path, value)
        except Exception:
            _logger.exception("Sensor callback for %s failed", path)


class InMemorySensorBus:
    """Bus fed by :meth:`publish`; for embedding and tests.

    ``period_ms`` is recorded but every publish is delivered.
    """

    def __init__(self, values: dict[str, Any] | None = None) -> None:
        self._values: dict[str, Any] = dict(values or {})
        self._subscriptions: list[Subscription] = []

    @property
    def subscriptions(self) -> list[Subscription]:
        return list(self._subscriptions)

    def get_current_value(self, path: str) -> Any | None:
        return self._values.get(path)

    def subscribe(self, path: str, period_ms: int, on_update: UpdateCallback) -> None:
        self._subscriptions.append(Subscription(path=path, period_ms=period_ms, on_update=on_update))

    def publish(self, path: str, value: Any) -> None:
        """Set the current value of *path* and notify subscribers."""
        if value is None:
            self._values.pop(path, None)
        else:
            self._values[path] = value
        dispatch_update(self._subscriptions, path, value)
