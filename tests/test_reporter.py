from __future__ import annotations

import asyncio
import math
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

import pytest

from skwindy import (
    InMemorySensorBus,
    JsonFileStateStore,
    MemoryStateStore,
    ReporterConfig,
    ReporterState,
    SchedulerPhase,
    WindyError,
    WindyReporter,
)
from skwindy._transport import HttpResponse
from skwindy.models import Position

NOW_MS = 1_760_000_000_000


class _RecordingTransport:
    def __init__(self) -> None:
        self.requests: list[tuple[str, dict[str, Any]]] = []

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        params: Mapping[str, Any] | None = None,
        json_body: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> HttpResponse:
        self.requests.append((method, dict(params or json_body or {})))
        return HttpResponse(200, "SUCCESS")

    def methods(self) -> list[str]:
        return [method for method, _ in self.requests]


async def _wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    async def _poll() -> None:
        while not predicate():
            await asyncio.sleep(0.005)

    await asyncio.wait_for(_poll(), timeout)


def _config(**overrides: Any) -> ReporterConfig:
    return ReporterConfig(
        station_id="st-1",
        station_password="pw",
        api_key="key",
        warmup_seconds=0.02,
        **overrides,
    )


def _bus() -> InMemorySensorBus:
    return InMemorySensorBus(
        {
            "environment.outside.temperature": 288.15,
            "environment.wind.speedOverGround": 5.0,
            "environment.wind.directionTrue": math.pi,
        }
    )


@pytest.mark.asyncio
async def test_report_now_requires_start() -> None:
    reporter = WindyReporter(_config(), _bus(), transport=_RecordingTransport())
    with pytest.raises(WindyError):
        await reporter.report_now()


@pytest.mark.asyncio
async def test_start_requires_context_manager() -> None:
    reporter = WindyReporter(_config(), _bus())
    with pytest.raises(WindyError):
        await reporter.start()


@pytest.mark.asyncio
async def test_first_cycle_after_warmup_sends_position_and_observation() -> None:
    bus = _bus()
    transport = _RecordingTransport()
    store = MemoryStateStore()
    statuses: list[str] = []

    async with WindyReporter(
        _config(),
        bus,
        transport=transport,
        state_store=store,
        clock=lambda: NOW_MS,
        on_status=statuses.append,
    ) as reporter:
        await reporter.start()
        assert reporter.scheduler is not None
        assert reporter.scheduler.phase is SchedulerPhase.WARMUP
        assert statuses[-1].startswith("Warming up")

        # Data arriving during the warm-up is picked up by the first cycle.
        bus.publish("navigation.position", {"latitude": 60.0, "longitude": 10.0})
        bus.publish("environment.wind.gust", 14.0)
        bus.publish("environment.wind.gust", 9.0)
        assert reporter.state.peak.current_peak() == 14.0

        await _wait_for(lambda: store.state.next_run_at is not None)

        assert transport.methods() == ["PUT", "GET"]
        observation = transport.requests[1][1]
        assert observation["gust"] == 14.0
        assert observation["winddir"] == 180
        assert reporter.state.peak.current_peak() == 0.0
        assert store.state.baseline_synced
        assert store.state.next_run_at == NOW_MS + 300_000
        assert reporter.status.startswith("Sent [T|W|G|D] at ")

        await reporter.stop()
        assert reporter.status.startswith("Stopped")
        await reporter.stop()


@pytest.mark.asyncio
async def test_report_now_forces_position_update() -> None:
    transport = _RecordingTransport()
    bus = _bus()
    bus.publish("navigation.position", {"latitude": 60.0, "longitude": 10.0})
    store = MemoryStateStore(
        ReporterState(
            baseline_position=Position(latitude=60.0, longitude=10.0),
            next_run_at=NOW_MS + 120_000,
            baseline_synced=True,
        )
    )

    async with WindyReporter(_config(), bus, transport=transport, state_store=store, clock=lambda: NOW_MS) as reporter:
        await reporter.start()

        result = await reporter.report_now()
        assert result is not None
        assert transport.methods() == ["GET"]

        result = await reporter.report_now(force=True)
        assert result is not None
        assert result.metadata.ok
        assert transport.methods() == ["GET", "PUT", "GET"]


@pytest.mark.asyncio
async def test_restart_resumes_schedule_from_state_file(tmp_path: Path) -> None:
    path = tmp_path / "windy-state.json"
    bus = _bus()
    bus.publish("navigation.position", {"latitude": 60.0, "longitude": 10.0})

    first = _RecordingTransport()
    async with WindyReporter(_config(state_path=path), bus, transport=first, clock=lambda: NOW_MS) as reporter:
        await reporter.start()
        await reporter.report_now()
    assert first.methods() == ["PUT", "GET"]

    saved = await JsonFileStateStore(path).load()
    assert saved.next_run_at == NOW_MS + 300_000
    assert saved.baseline_position == Position(latitude=60.0, longitude=10.0)

    second = _RecordingTransport()
    later = NOW_MS + 60_000
    async with WindyReporter(_config(state_path=path), _bus(), transport=second, clock=lambda: later) as reporter:
        await reporter.start()
        assert reporter.scheduler is not None
        assert reporter.scheduler.phase is SchedulerPhase.ARMED
        assert reporter.scheduler.armed_delay_ms == 240_000
        assert reporter.state.guard.synced
        assert reporter.status.startswith("Resumed, next report in 240s")
    assert second.requests == []
