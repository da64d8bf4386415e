"""Internal constants shared across the library."""

from __future__ import annotations

import math

BASE_URL = "https://stations.windy.com"
OBSERVATION_ENDPOINT = "/api/v2/observation/update"
STATION_ENDPOINT = "/api/v2/pws/{station_id}"
USER_AGENT = "skwindy/1"
API_KEY_HEADER = "windy-api-key"

#: Earth mean radius used by the movement guard projection.
EARTH_RADIUS_M = 6_371_000.0

DEFAULT_INTERVAL_MINUTES = 5
#: Windy accepts one observation per station every five minutes.
MIN_INTERVAL_MINUTES = 5
DEFAULT_MIN_MOVE_METERS = 300.0
DEFAULT_WARMUP_SECONDS = 15.0
DEFAULT_SAMPLE_PERIOD_MS = 1000

# ------------------------------------------------------------------
# Signal K paths
# ------------------------------------------------------------------

POSITION_PATH = "navigation.position"
DEFAULT_TEMPERATURE_PATH = "environment.outside.temperature"
DEFAULT_WIND_SPEED_PATH = "environment.wind.speedOverGround"
DEFAULT_WIND_GUST_PATH = "environment.wind.gust"
DEFAULT_WIND_DIRECTION_PATH = "environment.wind.directionTrue"
DEFAULT_PRESSURE_PATH = "environment.outside.pressure"
DEFAULT_HUMIDITY_PATH = "environment.outside.humidity"

# ------------------------------------------------------------------
# Unit conversions (Signal K SI units -> Windy wire units)
# ------------------------------------------------------------------

_KELVIN_OFFSET = 273.15


def kelvin_to_celsius(value: float) -> float:
    """Convert an absolute temperature to °C, rounded to one decimal."""
    return round(float(value) - _KELVIN_OFFSET, 1)


def ratio_to_percent(value: float) -> int:
    """Convert a 0..1 ratio to an integer percentage."""
    return int(round(float(value) * 100))


def radians_to_degrees(value: float) -> int:
    """Convert a bearing in radians to whole degrees wrapped into [0, 360)."""
    return int(round(math.degrees(float(value)))) % 360
