"""Vessel position model."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, Field, field_validator

from skwindy.models._base import WindyBaseModel, safe_float, unwrap_value


class Position(WindyBaseModel):
    """A latitude/longitude pair in decimal degrees.

    Parameters
    ----------
    latitude : float
        Degrees north, -90..90.
    longitude : float
        Degrees east, -180..180.
    """

    latitude: float = Field(validation_alias=AliasChoices("latitude", "lat"))
    longitude: float = Field(validation_alias=AliasChoices("longitude", "lon", "lng"))

    @field_validator("latitude")
    @classmethod
    def _check_latitude(cls, value: float) -> float:
        if not -90.0 <= value <= 90.0:
            raise ValueError(f"latitude out of range: {value}")
        return value

    @field_validator("longitude")
    @classmethod
    def _check_longitude(cls, value: float) -> float:
        if not -180.0 <= value <= 180.0:
            raise ValueError(f"longitude out of range: {value}")
        return value

    @property
    def is_fix(self) -> bool:
        """``False`` for the (0, 0) no-fix sentinel."""
        return not (self.latitude == 0.0 and self.longitude == 0.0)

    @classmethod
    def from_value(cls, value: Any) -> Position | None:
        """Parse a Signal K ``navigation.position`` value.

        Returns ``None`` for absent, malformed, out-of-range or (0, 0) input.
        """
        value = unwrap_value(value)
        if not isinstance(value, dict):
            return None
        lat = safe_float(value.get("latitude", value.get("lat")))
        lon = safe_float(value.get("longitude", value.get("lon")))
        if lat is None or lon is None:
            return None
        try:
            position = cls(latitude=lat, longitude=lon)
        except ValueError:
            return None
        return position if position.is_fix else None
