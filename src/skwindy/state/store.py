"""Durable engine state.

The persisted record is small and written whole at every commit point: after
a successful station sync, after each reschedule, and on stop. A crash can
lose at most the mutation since the last write.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from skwindy.models.position import Position

_logger = logging.getLogger(__name__)


class ReporterState(BaseModel):
    """Recovery record owned by the engine.

    ``next_run_at`` is epoch milliseconds; ``None`` means "due now".
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    baseline_position: Position | None = None
    accumulated_distance: float = Field(default=0.0, ge=0.0)
    next_run_at: int | None = None
    baseline_synced: bool = False


class StateStore(Protocol):
    """Load/save interface for :class:`ReporterState`."""

    async def load(self) -> ReporterState:
        ...

    async def save(self, state: ReporterState) -> None:
        ...


class MemoryStateStore:
    """Keeps the record in memory. Used when no state path is configured."""

    def __init__(self, initial: ReporterState | None = None) -> None:
        self.state = initial or ReporterState()
        self.saves = 0

    async def load(self) -> ReporterState:
        return self.state

    async def save(self, state: ReporterState) -> None:
        self.state = state
        self.saves += 1


class JsonFileStateStore:
    """Stores the record as a JSON file.

    Writes go to a sibling temp file and are renamed into place so a crash
    mid-write leaves the previous record intact. File I/O runs in a worker
    thread to keep the event loop responsive.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> ReporterState:
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return ReporterState()
        except (OSError, UnicodeDecodeError):
            _logger.warning("Cannot read state file %s, starting fresh", self._path, exc_info=True)
            return ReporterState()
        try:
            return ReporterState.model_validate(json.loads(text))
        except (json.JSONDecodeError, ValidationError):
            _logger.warning("Ignoring unreadable state file %s", self._path, exc_info=True)
            return ReporterState()

    def _write(self, state: ReporterState) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_name(f"{self._path.name}.tmp")
        blob = json.dumps(state.model_dump(mode="json"), indent=2, sort_keys=True)
        tmp.write_text(blob, encoding="utf-8")
        os.replace(tmp, self._path)

    async def load(self) -> ReporterState:
        async with self._lock:
            return await asyncio.to_thread(self._read)

    async def save(self, state: ReporterState) -> None:
        async with self._lock:
            await asyncio.to_thread(self._write, state)
        _logger.debug("State saved to %s", self._path)
