"""High-level async reporter for Windy stations."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

import aiohttp

from skwindy._transport import AiohttpTransport, Transport
from skwindy.bus import SensorBus
from skwindy.config import ReporterConfig
from skwindy.engine.orchestrator import ReportingOrchestrator
from skwindy.engine.results import CycleResult
from skwindy.engine.scheduler import Scheduler
from skwindy.engine.status import StatusBoard
from skwindy.exceptions import WindyError
from skwindy.models.position import Position
from skwindy.state.engine import EngineState
from skwindy.state.store import JsonFileStateStore, MemoryStateStore, StateStore

_logger = logging.getLogger(__name__)


def _now_ms() -> int:
    """Current epoch timestamp in milliseconds."""
    return int(time.time() * 1000)


def default_state_store(config: ReporterConfig) -> StateStore:
    if config.state_path is not None:
        return JsonFileStateStore(config.state_path)
    return MemoryStateStore()


class WindyReporter:
    """Periodic Windy reporter fed by a sensor bus.

    Usage::

        async with WindyReporter(config, bus) as reporter:
            await reporter.start()
            ...
            await reporter.stop()
    """

    def __init__(
        self,
        config: ReporterConfig,
        bus: SensorBus,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        state_store: StateStore | None = None,
        clock: Callable[[], int] = _now_ms,
        on_status: Callable[[str], None] | None = None,
    ) -> None:
        self._config = config
        self._bus = bus
        self._external_session = session is not None
        self._http_session = session
        self._transport = transport
        self._external_transport = transport is not None
        self._store = state_store or default_state_store(config)
        self._clock = clock
        self._state = EngineState()
        self._status = StatusBoard(self._state.guard, on_status)
        self._orchestrator: ReportingOrchestrator | None = None
        self._scheduler: Scheduler | None = None
        self._subscribed = False

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> WindyReporter:
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = AiohttpTransport(self._config, self._http_session)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if not self._external_transport:
            self._transport = None

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def status(self) -> str:
        return self._status.text

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def scheduler(self) -> Scheduler | None:
        return self._scheduler

    @property
    def orchestrator(self) -> ReportingOrchestrator | None:
        return self._orchestrator

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise WindyError("Reporter not initialized. Use 'async with WindyReporter(...) as reporter:'")
        return self._transport

    # ------------------------------------------------------------------
    # Bus callbacks
    # ------------------------------------------------------------------

    def _on_position(self, _path: str, value: Any) -> None:
        position = Position.from_value(value)
        if position is not None:
            self._state.guard.observe_position(position.latitude, position.longitude)

    def _on_gust(self, _path: str, value: Any) -> None:
        self._state.peak.sample(value)

    def _subscribe(self) -> None:
        if self._subscribed:
            return
        period = self._config.sample_period_ms
        self._bus.subscribe(self._config.paths.position, period, self._on_position)
        self._bus.subscribe(self._config.paths.wind_gust, period, self._on_gust)
        self._subscribed = True

    # ------------------------------------------------------------------
    # Engine
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Load persisted state, subscribe to the bus and arm the scheduler."""
        if self._scheduler is not None:
            return
        transport = self._require_transport()

        record = await self._store.load()
        self._state = EngineState.from_record(record)
        self._status.bind(self._state.guard)
        _logger.info(
            "Starting Windy reporter station=%s next_run_at=%s baseline=%s",
            self._config.station_id,
            record.next_run_at,
            record.baseline_position,
        )

        self._orchestrator = ReportingOrchestrator(
            self._config,
            transport,
            self._bus,
            self._state,
            self._store,
            self._status,
            clock=self._clock,
        )
        self._scheduler = Scheduler(
            state=self._state,
            store=self._store,
            run_cycle=self._orchestrator.run_cycle,
            interval_ms=self._config.interval_ms,
            warmup_ms=self._config.warmup_ms,
            force_first=self._config.force_update,
            status=self._status,
            clock=self._clock,
        )
        self._subscribe()
        self._scheduler.start()

    async def stop(self) -> None:
        """Stop the scheduler and persist state. Idempotent."""
        scheduler = self._scheduler
        self._scheduler = None
        if scheduler is None:
            return
        _logger.info("Stopping Windy reporter")
        await scheduler.stop()
        self._status.update("Stopped")

    async def report_now(self, *, force: bool = False) -> CycleResult | None:
        """Run a cycle immediately; ``None`` if one is already running."""
        if self._scheduler is None:
            raise WindyError("Reporter not started")
        return await self._scheduler.run_now(force=force)
