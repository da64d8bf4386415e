"""skwindy - Async Signal K to Windy.com weather station reporter."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("skwindy")
except PackageNotFoundError:
    __version__ = "0+local"
from skwindy.bus import InMemorySensorBus, SensorBus
from skwindy.config import ReporterConfig, SensorHeights, SensorPaths
from skwindy.engine import (
    CycleResult,
    PhaseOutcome,
    PhaseResult,
    ReportingOrchestrator,
    Scheduler,
    SchedulerPhase,
    StatusBoard,
    compute_next_run_at,
)
from skwindy.exceptions import (
    NoFixAvailable,
    NoSensorData,
    WindyApiError,
    WindyAuthenticationError,
    WindyConfigError,
    WindyError,
    WindyMalformedRequestError,
    WindyRateLimitError,
    WindyTransportError,
)
from skwindy.models import ObservationSnapshot, Position, StationMetadata
from skwindy.reporter import WindyReporter
from skwindy.state import (
    EngineState,
    JsonFileStateStore,
    MemoryStateStore,
    MovementGuard,
    PeakSampler,
    ReporterState,
    StateStore,
)

__all__ = [
    "__version__",
    "CycleResult",
    "EngineState",
    "InMemorySensorBus",
    "JsonFileStateStore",
    "MemoryStateStore",
    "MovementGuard",
    "NoFixAvailable",
    "NoSensorData",
    "ObservationSnapshot",
    "PeakSampler",
    "PhaseOutcome",
    "PhaseResult",
    "Position",
    "ReporterConfig",
    "ReporterState",
    "ReportingOrchestrator",
    "Scheduler",
    "SchedulerPhase",
    "SensorBus",
    "SensorHeights",
    "SensorPaths",
    "StateStore",
    "StationMetadata",
    "StatusBoard",
    "WindyApiError",
    "WindyAuthenticationError",
    "WindyConfigError",
    "WindyError",
    "WindyMalformedRequestError",
    "WindyRateLimitError",
    "WindyReporter",
    "WindyTransportError",
    "compute_next_run_at",
]
