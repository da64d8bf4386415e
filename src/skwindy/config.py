"""Reporter configuration for skwindy."""

from __future__ import annotations

import dataclasses
import logging
import math
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from skwindy._constants import (
    BASE_URL,
    DEFAULT_HUMIDITY_PATH,
    DEFAULT_INTERVAL_MINUTES,
    DEFAULT_MIN_MOVE_METERS,
    DEFAULT_PRESSURE_PATH,
    DEFAULT_SAMPLE_PERIOD_MS,
    DEFAULT_TEMPERATURE_PATH,
    DEFAULT_WARMUP_SECONDS,
    DEFAULT_WIND_DIRECTION_PATH,
    DEFAULT_WIND_GUST_PATH,
    DEFAULT_WIND_SPEED_PATH,
    MIN_INTERVAL_MINUTES,
    POSITION_PATH,
)
from skwindy.exceptions import WindyConfigError

_logger = logging.getLogger(__name__)

SHARE_OPTIONS: frozenset[str] = frozenset({"public", "private"})


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


@dataclasses.dataclass(frozen=True)
class SensorPaths:
    """Signal K paths read for each observation field.

    Blank overrides fall back to the defaults.
    """

    position: str = POSITION_PATH
    temperature: str = DEFAULT_TEMPERATURE_PATH
    wind_speed: str = DEFAULT_WIND_SPEED_PATH
    wind_gust: str = DEFAULT_WIND_GUST_PATH
    wind_direction: str = DEFAULT_WIND_DIRECTION_PATH
    pressure: str = DEFAULT_PRESSURE_PATH
    humidity: str = DEFAULT_HUMIDITY_PATH

    @classmethod
    def from_path_map(cls, path_map: Mapping[str, Any] | None) -> SensorPaths:
        """Build from the ``pathMap`` settings block (camelCase keys)."""
        if not path_map:
            return cls()
        keys = {
            "temp": "temperature",
            "windSpeed": "wind_speed",
            "windGust": "wind_gust",
            "windDir": "wind_direction",
            "pressure": "pressure",
            "humidity": "humidity",
            "position": "position",
        }
        kwargs: dict[str, str] = {}
        for setting_key, field_name in keys.items():
            value = _blank_to_none(path_map.get(setting_key))
            if value is not None:
                kwargs[field_name] = str(value).strip()
        return cls(**kwargs)


@dataclasses.dataclass(frozen=True)
class SensorHeights:
    """Station elevation and sensor mounting heights in meters.

    Windy only accepts integers; values are rounded when sent.
    """

    elevation_m: float = 0.0
    temperature_agl_m: float = 2.0
    wind_agl_m: float = 10.0


@dataclasses.dataclass(frozen=True)
class ReporterConfig:
    """Reporter configuration.

    Parameters
    ----------
    station_id : str
        Windy station id.
    station_password : str
        Per-station secret used for observation updates.
    api_key : str
        Account level API key used for station metadata updates.
    station_name : str
        Display name sent with the metadata.
    station_type : str
        Free-text station description.
    station_website : str or None
        Operator URL, omitted when unset.
    share_option : str
        ``"public"`` or ``"private"``.
    interval_minutes : float
        Reporting interval. Clamped to ``MIN_INTERVAL_MINUTES``.
    min_move_meters : float
        Displacement from the last synced position that triggers a
        metadata update.
    force_update : bool
        Force a metadata update on the first cycle after start.
    paths : SensorPaths
        Signal K path overrides.
    heights : SensorHeights
        Station elevation and sensor heights.
    base_url : str
        Windy stations API base URL.
    request_timeout : float
        Per-request timeout in seconds.
    warmup_seconds : float
        Delay before the first report after a cold start.
    sample_period_ms : int
        Subscription period requested for the position and gust streams.
    state_path : Path or None
        JSON file used to persist engine state. ``None`` keeps state in memory.
    mqtt_host : str or None
        Signal K MQTT gateway host for the bundled MQTT bus.
    mqtt_port : int
        MQTT gateway port.
    mqtt_topic_prefix : str
        Topic prefix the gateway publishes Signal K paths under.
    """

    station_id: str
    station_password: str
    api_key: str
    station_name: str = ""
    station_type: str = "Boat (Signal K)"
    station_website: str | None = None
    share_option: str = "public"
    interval_minutes: float = DEFAULT_INTERVAL_MINUTES
    min_move_meters: float = DEFAULT_MIN_MOVE_METERS
    force_update: bool = False
    paths: SensorPaths = dataclasses.field(default_factory=SensorPaths)
    heights: SensorHeights = dataclasses.field(default_factory=SensorHeights)
    base_url: str = BASE_URL
    request_timeout: float = 20.0
    warmup_seconds: float = DEFAULT_WARMUP_SECONDS
    sample_period_ms: int = DEFAULT_SAMPLE_PERIOD_MS
    state_path: Path | None = None
    mqtt_host: str | None = None
    mqtt_port: int = 1883
    mqtt_topic_prefix: str = "vessels/self"

    def __post_init__(self) -> None:
        for name in ("station_id", "station_password", "api_key"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise WindyConfigError(f"{name} is required")
        if self.share_option not in SHARE_OPTIONS:
            raise WindyConfigError(f"share_option must be one of {sorted(SHARE_OPTIONS)}, got {self.share_option!r}")
        if self.min_move_meters < 0:
            raise WindyConfigError("min_move_meters must not be negative")
        for name, value in dataclasses.asdict(self.heights).items():
            if not math.isfinite(value):
                raise WindyConfigError(f"heights.{name} must be a finite number, got {value!r}")
            if name != "elevation_m" and value < 0:
                raise WindyConfigError(f"heights.{name} must not be negative")
        if self.interval_minutes < MIN_INTERVAL_MINUTES:
            _logger.warning(
                "interval_minutes=%s below minimum, using %s",
                self.interval_minutes,
                MIN_INTERVAL_MINUTES,
            )
            object.__setattr__(self, "interval_minutes", MIN_INTERVAL_MINUTES)
        if self.state_path is not None and not isinstance(self.state_path, Path):
            object.__setattr__(self, "state_path", Path(self.state_path))

    @property
    def interval_ms(self) -> int:
        return int(self.interval_minutes * 60_000)

    @property
    def warmup_ms(self) -> int:
        return int(self.warmup_seconds * 1000)

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any], **overrides: Any) -> ReporterConfig:
        """Create configuration from a nested settings mapping.

        The mapping uses the plugin settings layout::

            {
                "credentials": {"stationId", "stationPassword", "apiKey"},
                "identity": {"stationName", "stationType", "stationWebsite", "shareOption"},
                "logic": {"interval", "minMove", "forceUpdate"},
                "pathMap": {"temp", "windSpeed", "windGust", "windDir", "pressure", "humidity"},
                "heights": {"elevation", "temperature", "wind"},
            }

        Explicit keyword arguments override mapping values.
        """
        credentials = settings.get("credentials") or {}
        identity = settings.get("identity") or {}
        logic = settings.get("logic") or {}
        heights = settings.get("heights") or {}

        kwargs: dict[str, Any] = {
            "station_id": credentials.get("stationId", ""),
            "station_password": credentials.get("stationPassword", ""),
            "api_key": credentials.get("apiKey", ""),
            "paths": SensorPaths.from_path_map(settings.get("pathMap")),
        }

        identity_map = {
            "stationName": "station_name",
            "stationType": "station_type",
            "stationWebsite": "station_website",
            "shareOption": "share_option",
        }
        for setting_key, field_name in identity_map.items():
            value = _blank_to_none(identity.get(setting_key))
            if value is not None:
                kwargs[field_name] = value

        if logic.get("interval") is not None:
            kwargs["interval_minutes"] = float(logic["interval"])
        if logic.get("minMove") is not None:
            kwargs["min_move_meters"] = float(logic["minMove"])
        if logic.get("forceUpdate") is not None:
            kwargs["force_update"] = bool(logic["forceUpdate"])

        height_kwargs: dict[str, float] = {}
        for setting_key, field_name in (
            ("elevation", "elevation_m"),
            ("temperature", "temperature_agl_m"),
            ("wind", "wind_agl_m"),
        ):
            if heights.get(setting_key) is not None:
                height_kwargs[field_name] = float(heights[setting_key])
        if height_kwargs:
            kwargs["heights"] = SensorHeights(**height_kwargs)

        kwargs.update(overrides)
        return cls(**kwargs)

    @classmethod
    def from_env(cls, **overrides: Any) -> ReporterConfig:
        """Create configuration from ``WINDY_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "WINDY_STATION_ID": "station_id",
            "WINDY_STATION_PASSWORD": "station_password",
            "WINDY_API_KEY": "api_key",
            "WINDY_STATION_NAME": "station_name",
            "WINDY_STATION_TYPE": "station_type",
            "WINDY_STATION_WEBSITE": "station_website",
            "WINDY_SHARE_OPTION": "share_option",
            "WINDY_BASE_URL": "base_url",
            "WINDY_MQTT_HOST": "mqtt_host",
            "WINDY_MQTT_TOPIC_PREFIX": "mqtt_topic_prefix",
        }
        config_kwargs: dict[str, Any] = {"station_id": "", "station_password": "", "api_key": ""}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        _ENV_FLOAT_MAP = {
            "WINDY_INTERVAL_MINUTES": "interval_minutes",
            "WINDY_MIN_MOVE_METERS": "min_move_meters",
            "WINDY_REQUEST_TIMEOUT": "request_timeout",
            "WINDY_WARMUP_SECONDS": "warmup_seconds",
        }
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = float(val)

        port_env = env.get("WINDY_MQTT_PORT")
        if port_env is not None and "mqtt_port" not in overrides:
            config_kwargs["mqtt_port"] = int(port_env)

        state_env = env.get("WINDY_STATE_PATH")
        if state_env and "state_path" not in overrides:
            config_kwargs["state_path"] = Path(state_env)

        if "force_update" not in overrides:
            config_kwargs["force_update"] = _env_bool(env.get("WINDY_FORCE_UPDATE"), False)

        config_kwargs.update(overrides)
        return cls(**config_kwargs)
