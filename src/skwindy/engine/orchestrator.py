"""Two-phase reporting cycle.

Each cycle optionally re-registers the station position (metadata phase)
and then submits the current observation. The metadata phase goes first
because Windy attaches an observation to the most recently registered
position. The phases are independent: a failed position update never blocks
the observation, and each phase's side effect (baseline commit, gust peak
reset) is only applied when that phase succeeds.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import datetime

from skwindy._api.observation import submit_observation
from skwindy._api.station import update_station
from skwindy._constants import kelvin_to_celsius, radians_to_degrees, ratio_to_percent
from skwindy._transport import Transport
from skwindy.bus import SensorBus
from skwindy.config import ReporterConfig
from skwindy.engine.results import CycleResult, PhaseOutcome, PhaseResult
from skwindy.engine.status import StatusBoard, describe_error
from skwindy.exceptions import NoFixAvailable, NoSensorData, WindyConfigError, WindyError
from skwindy.models._base import safe_float, unwrap_value
from skwindy.models.observation import ObservationSnapshot
from skwindy.models.position import Position
from skwindy.models.station import StationMetadata
from skwindy.state.engine import EngineState
from skwindy.state.store import StateStore

_logger = logging.getLogger(__name__)


def _now_ms() -> int:
    """Current epoch timestamp in milliseconds."""
    return int(time.time() * 1000)


class ReportingOrchestrator:
    """Runs reporting cycles against the bus, the API and the engine state."""

    def __init__(
        self,
        config: ReporterConfig,
        transport: Transport,
        bus: SensorBus,
        state: EngineState,
        store: StateStore,
        status: StatusBoard,
        *,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self._config = config
        self._transport = transport
        self._bus = bus
        self._state = state
        self._store = store
        self._status = status
        self._clock = clock
        self.last_observation: ObservationSnapshot | None = None
        self.last_sent_at: int | None = None

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    def _read(self, path: str) -> float | None:
        return safe_float(unwrap_value(self._bus.get_current_value(path)))

    def current_position(self) -> Position | None:
        return Position.from_value(self._bus.get_current_value(self._config.paths.position))

    def build_snapshot(self) -> ObservationSnapshot:
        """Read the bus and convert to Windy units.

        The gust is the larger of the point reading and the sampled peak.
        """
        paths = self._config.paths

        temperature = self._read(paths.temperature)
        wind = self._read(paths.wind_speed)
        gust = self._read(paths.wind_gust)
        direction = self._read(paths.wind_direction)
        pressure = self._read(paths.pressure)
        humidity = self._read(paths.humidity)

        peak = self._state.peak.current_peak()
        if peak > 0 and (gust is None or peak > gust):
            gust = peak

        return ObservationSnapshot(
            temp=kelvin_to_celsius(temperature) if temperature is not None else None,
            wind=wind,
            gust=gust,
            winddir=radians_to_degrees(direction) if direction is not None else None,
            pressure=int(round(pressure)) if pressure is not None else None,
            rh=ratio_to_percent(humidity) if humidity is not None else None,
        )

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    async def _save_state(self) -> None:
        try:
            await self._store.save(self._state.to_record())
        except OSError:
            _logger.warning("Failed to persist reporter state", exc_info=True)

    async def _metadata_phase(self, position: Position | None, *, force: bool) -> PhaseResult:
        guard = self._state.guard
        if position is None:
            return PhaseResult.skipped(NoFixAvailable("no valid position on the bus"))
        if not guard.is_due(self._config.min_move_meters, force=force):
            return PhaseResult.skipped()

        try:
            metadata = StationMetadata.from_config(self._config, position)
        except ValueError as exc:
            _logger.warning("Station metadata rejected locally: %s", exc)
            return PhaseResult.failed(WindyConfigError(f"invalid station metadata: {exc}"))
        try:
            await update_station(self._config, self._transport, metadata)
        except WindyError as exc:
            _logger.warning("Station position update failed: %s", exc)
            return PhaseResult.failed(exc)

        guard.commit(position.latitude, position.longitude)
        await self._save_state()
        _logger.info("Station position updated (share=%s)", self._config.share_option)
        return PhaseResult.success()

    async def _observation_phase(self, snapshot: ObservationSnapshot) -> PhaseResult:
        if snapshot.is_empty:
            return PhaseResult.skipped(NoSensorData("no sensor values on the bus"))
        now_ms = self._clock()
        try:
            await submit_observation(self._config, self._transport, snapshot, now_ms=now_ms)
        except WindyError as exc:
            _logger.warning("Observation update failed: %s", exc)
            return PhaseResult.failed(exc)

        self._state.peak.reset()
        self.last_observation = snapshot
        self.last_sent_at = now_ms
        return PhaseResult.success()

    # ------------------------------------------------------------------
    # Cycle
    # ------------------------------------------------------------------

    async def run_cycle(self, *, force: bool = False) -> CycleResult:
        """Run one metadata + observation cycle and update the status."""
        position = self.current_position()
        if position is not None:
            self._state.guard.observe_position(position.latitude, position.longitude)

        self._state.peak.checkpoint()
        snapshot = self.build_snapshot()
        metadata = await self._metadata_phase(position, force=force)
        observation = await self._observation_phase(snapshot)

        result = CycleResult(metadata=metadata, observation=observation, snapshot=snapshot, position=position)
        self._report(result)
        return result

    def _report(self, result: CycleResult) -> None:
        metadata = result.metadata
        observation = result.observation

        if observation.outcome is PhaseOutcome.FAILED and observation.error is not None:
            self._status.fail(observation.error)
            return

        if observation.ok:
            sent_at = datetime.fromtimestamp((self.last_sent_at or self._clock()) / 1000).strftime("%H:%M:%S")
            flags = "|".join(result.snapshot.flags())
            if metadata.ok:
                suffix = "(Moved)"
            elif isinstance(metadata.error, NoFixAvailable):
                suffix = "(No fix)"
            else:
                suffix = "(Static)"
            last_error = "None"
            if metadata.outcome is PhaseOutcome.FAILED and metadata.error is not None:
                suffix = f"{suffix} position update failed: {metadata.error.code}"
                last_error = describe_error(metadata.error)
            self._status.update(f"Sent [{flags}] at {sent_at} {suffix}", last_error=last_error)
            return

        # Observation skipped: no sensor data.
        if metadata.outcome is PhaseOutcome.FAILED and metadata.error is not None:
            self._status.fail(metadata.error)
        elif isinstance(metadata.error, NoFixAvailable):
            self._status.update("Waiting for GPS fix", error=True)
        else:
            self._status.update("Waiting for sensor data", error=True)
