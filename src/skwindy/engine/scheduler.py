"""Persistent self-rescheduling timer.

The scheduler arms one ``loop.call_later`` timer at a time. When it fires,
the reporting cycle runs to completion and only then is the next absolute run
time computed, persisted and armed. Rescheduling from the completion time
keeps slow network calls from compounding drift and lets a rate-limit
window replace the interval for exactly one cycle.

Phases::

    IDLE --start(past/unset next_run_at)--> WARMUP --fire--> ARMED
    IDLE --start(future next_run_at)------> ARMED  --fire--> ARMED
    WARMUP/ARMED --stop--> IDLE
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from enum import StrEnum
from typing import Protocol

from skwindy.engine.results import CycleResult
from skwindy.engine.status import StatusBoard
from skwindy.state.engine import EngineState
from skwindy.state.store import StateStore

_logger = logging.getLogger(__name__)


class SchedulerPhase(StrEnum):
    IDLE = "idle"
    WARMUP = "warmup"
    ARMED = "armed"


class CycleRunner(Protocol):
    def __call__(self, *, force: bool = False) -> Awaitable[CycleResult]:
        ...


def _now_ms() -> int:
    """Current epoch timestamp in milliseconds."""
    return int(time.time() * 1000)


def compute_next_run_at(now_ms: int, interval_ms: int, retry_after_ms: int | None = None) -> int:
    """Absolute time of the next report.

    A rate-limit window, when given, replaces the interval.
    """
    if retry_after_ms is not None:
        return now_ms + max(0, int(retry_after_ms))
    return now_ms + interval_ms


def initial_delay_ms(now_ms: int, next_run_at: int | None, warmup_ms: int) -> tuple[int, bool]:
    """Delay before the first fire after start, and whether it is a warm-up.

    A past or unset ``next_run_at`` means the report is overdue; wait
    ``warmup_ms`` for the sensor bus to populate instead of firing at once.
    """
    if next_run_at is None or next_run_at <= now_ms:
        return warmup_ms, True
    return next_run_at - now_ms, False


class Scheduler:
    """Drives reporting cycles for one :class:`EngineState`.

    At most one cycle runs at a time: a timer that fires while the previous
    cycle is still awaiting the network skips its turn and re-arms for the
    regular interval.
    """

    def __init__(
        self,
        *,
        state: EngineState,
        store: StateStore,
        run_cycle: CycleRunner,
        interval_ms: int,
        warmup_ms: int,
        force_first: bool = False,
        status: StatusBoard | None = None,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self._state = state
        self._store = store
        self._run_cycle = run_cycle
        self._interval_ms = interval_ms
        self._warmup_ms = warmup_ms
        self._force_first = force_first
        self._status = status
        self._clock = clock
        self._phase = SchedulerPhase.IDLE
        self._handle: asyncio.TimerHandle | None = None
        self._cycle_task: asyncio.Task[CycleResult | None] | None = None
        self._background: set[asyncio.Task[None]] = set()
        self._started = False
        self._force_next = False
        self._generation = 0
        self.armed_delay_ms: int | None = None
        self.skipped_cycles = 0

    @property
    def phase(self) -> SchedulerPhase:
        return self._phase

    @property
    def cycle_in_flight(self) -> bool:
        return self._cycle_task is not None and not self._cycle_task.done()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Arm the first timer. Must be called from a running event loop."""
        if self._started:
            return
        self._started = True
        self._generation += 1
        self._force_next = self._force_first

        delay, warmup = initial_delay_ms(self._clock(), self._state.next_run_at, self._warmup_ms)
        if warmup:
            _logger.info("Warming up for %.0fs before the first report", delay / 1000)
            self._arm(delay, SchedulerPhase.WARMUP)
            self._set_status(f"Warming up ({round(delay / 1000)}s)")
        else:
            _logger.info("Resuming schedule, next report in %.0fs", delay / 1000)
            self._arm(delay, SchedulerPhase.ARMED)
            self._set_status(f"Resumed, next report in {round(delay / 1000)}s")

    async def stop(self) -> None:
        """Cancel the timer and persist state. Idempotent.

        An in-flight cycle is left to finish but will not re-arm.
        """
        if not self._started:
            return
        self._started = False
        self._cancel_timer()
        self._phase = SchedulerPhase.IDLE
        await self._save()

    async def run_now(self, *, force: bool = False) -> CycleResult | None:
        """Run a cycle immediately and reschedule from its completion.

        Returns ``None`` if a cycle is already in flight.
        """
        if self.cycle_in_flight:
            return None
        self._cancel_timer()
        self._force_next = self._force_next or force
        task = asyncio.get_running_loop().create_task(self._run_and_rearm())
        self._cycle_task = task
        return await task

    # ------------------------------------------------------------------
    # Timer
    # ------------------------------------------------------------------

    def _set_status(self, message: str) -> None:
        if self._status is not None:
            self._status.update(message)

    def _cancel_timer(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _arm(self, delay_ms: int, phase: SchedulerPhase) -> None:
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(max(0, delay_ms) / 1000, self._on_timer)
        self._phase = phase
        self.armed_delay_ms = delay_ms

    def _on_timer(self) -> None:
        self._handle = None
        if not self._started:
            return
        if self.cycle_in_flight:
            self.skipped_cycles += 1
            _logger.warning("Previous reporting cycle still running; skipping this one")
            self._reschedule(None)
            task = asyncio.get_running_loop().create_task(self._save())
            self._background.add(task)
            task.add_done_callback(self._background.discard)
            return
        self._cycle_task = asyncio.get_running_loop().create_task(self._run_and_rearm())

    def _reschedule(self, retry_after_ms: int | None) -> None:
        now = self._clock()
        next_run_at = compute_next_run_at(now, self._interval_ms, retry_after_ms)
        self._state.next_run_at = next_run_at
        self._arm(next_run_at - now, SchedulerPhase.ARMED)

    async def _run_and_rearm(self) -> CycleResult | None:
        generation = self._generation
        force = self._force_next
        self._force_next = False
        result: CycleResult | None = None
        try:
            result = await self._run_cycle(force=force)
        except Exception:
            _logger.exception("Reporting cycle failed unexpectedly")

        if not self._started or generation != self._generation:
            return result

        retry_after_ms = result.retry_after_ms if result is not None else None
        if retry_after_ms is not None:
            _logger.info("Rate limited; next report in %.0fs", retry_after_ms / 1000)
        self._reschedule(retry_after_ms)
        await self._save()
        return result

    async def _save(self) -> None:
        try:
            await self._store.save(self._state.to_record())
        except OSError:
            _logger.warning("Failed to persist reporter state", exc_info=True)
