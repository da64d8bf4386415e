"""Data models for skwindy."""

from skwindy.models._base import WindyBaseModel, safe_float, unwrap_value
from skwindy.models.observation import ObservationSnapshot
from skwindy.models.position import Position
from skwindy.models.station import StationMetadata

__all__ = [
    "ObservationSnapshot",
    "Position",
    "StationMetadata",
    "WindyBaseModel",
    "safe_float",
    "unwrap_value",
]
