"""State layer.

Movement tracking, gust peak sampling and the persisted recovery record.
Only the engine mutates these.
"""

from skwindy.state.engine import EngineState
from skwindy.state.movement import MovementGuard, equirectangular_distance
from skwindy.state.peak import PeakSampler
from skwindy.state.store import JsonFileStateStore, MemoryStateStore, ReporterState, StateStore

__all__ = [
    "EngineState",
    "JsonFileStateStore",
    "MemoryStateStore",
    "MovementGuard",
    "PeakSampler",
    "ReporterState",
    "StateStore",
    "equirectangular_distance",
]
