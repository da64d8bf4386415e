"""Station metadata model."""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from skwindy.config import ReporterConfig
from skwindy.models._base import WindyBaseModel
from skwindy.models.position import Position


class StationMetadata(WindyBaseModel):
    """Identity, position and sensor heights of a Windy station.

    Coordinates are rounded to 5 decimals (about 1 m) and heights to whole
    meters; the API rejects non-integer heights.
    """

    lat: float
    lon: float
    name: str = ""
    type: str = ""
    share_option: str = "public"
    elev_m: int = 0
    agl_temp: int = Field(default=0, ge=0)
    agl_wind: int = Field(default=0, ge=0)
    url: str | None = None

    @field_validator("lat", "lon", mode="before")
    @classmethod
    def _round_coordinate(cls, value: Any) -> float:
        return round(float(value), 5)

    @field_validator("elev_m", "agl_temp", "agl_wind", mode="before")
    @classmethod
    def _round_height(cls, value: Any) -> int:
        return int(round(float(value)))

    @field_validator("url", mode="before")
    @classmethod
    def _blank_url(cls, value: Any) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @classmethod
    def from_config(cls, config: ReporterConfig, position: Position) -> StationMetadata:
        return cls(
            lat=position.latitude,
            lon=position.longitude,
            name=config.station_name,
            type=config.station_type,
            share_option=config.share_option,
            elev_m=config.heights.elevation_m,
            agl_temp=config.heights.temperature_agl_m,
            agl_wind=config.heights.wind_agl_m,
            url=config.station_website,
        )

    @property
    def position(self) -> Position:
        return Position(latitude=self.lat, longitude=self.lon)

    def to_payload(self) -> dict[str, Any]:
        """JSON body for the station update; an unset ``url`` is omitted."""
        return self.model_dump(exclude_none=True)
