"""Observation snapshot model."""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from skwindy.models._base import WindyBaseModel

# Status flag letter per field, in display order.
_FLAGS: tuple[tuple[str, str], ...] = (
    ("temp", "T"),
    ("wind", "W"),
    ("gust", "G"),
    ("winddir", "D"),
    ("pressure", "P"),
    ("rh", "H"),
)


class ObservationSnapshot(WindyBaseModel):
    """Sensor values for one report, already in Windy wire units.

    Parameters
    ----------
    wind : float or None
        Wind speed in m/s.
    gust : float or None
        Wind gust in m/s.
    winddir : int or None
        Wind direction in degrees, [0, 360).
    temp : float or None
        Air temperature in °C.
    pressure : int or None
        Air pressure in Pa.
    rh : int or None
        Relative humidity in percent.
    """

    wind: float | None = None
    gust: float | None = None
    winddir: int | None = Field(default=None, ge=0, lt=360)
    temp: float | None = None
    pressure: int | None = None
    rh: int | None = None

    @field_validator("wind", "gust")
    @classmethod
    def _round_speed(cls, value: float | None) -> float | None:
        return None if value is None else round(value, 1)

    @property
    def is_empty(self) -> bool:
        return not self.to_params()

    def to_params(self) -> dict[str, Any]:
        """Query parameters for the present fields; absent fields are omitted."""
        return self.model_dump(exclude_none=True)

    def flags(self) -> list[str]:
        """Sensor letters (``T W G D P H``) for the fields present."""
        return [flag for name, flag in _FLAGS if getattr(self, name) is not None]
