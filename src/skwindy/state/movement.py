"""Movement guard for station position updates.

Tracks the planar displacement from the last synced position with an
equirectangular projection around the baseline. The guard runs at the
sensor sample rate, so the latitude cosine is cached per baseline instead of
recomputed per sample. The approximation is good to tens of kilometers;
beyond that the guard only needs to know the threshold was crossed.
"""

from __future__ import annotations

import math

from skwindy._constants import EARTH_RADIUS_M
from skwindy.models.position import Position


def equirectangular_distance(
    base_lat: float,
    base_lon: float,
    lat: float,
    lon: float,
    *,
    cos_base_lat: float | None = None,
) -> float:
    """Planar distance in meters between two positions in degrees."""
    if cos_base_lat is None:
        cos_base_lat = math.cos(math.radians(base_lat))
    dx = math.radians(lon - base_lon) * cos_base_lat
    dy = math.radians(lat - base_lat)
    return EARTH_RADIUS_M * math.hypot(dx, dy)


def _is_fix(lat: float, lon: float) -> bool:
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return False
    return not (lat == 0.0 and lon == 0.0)


class MovementGuard:
    """Decides when the station position must be re-registered.

    The first valid sample seeds the baseline without marking it synced;
    :meth:`commit` marks a successful metadata sync. Samples at (0, 0) are
    the no-fix sentinel and are ignored.
    """

    def __init__(self) -> None:
        self._baseline: Position | None = None
        self._cos_base_lat = 1.0
        self._distance = 0.0
        self._synced = False
        self._last: Position | None = None

    @property
    def baseline(self) -> Position | None:
        return self._baseline

    @property
    def last_position(self) -> Position | None:
        return self._last

    @property
    def synced(self) -> bool:
        """Whether the baseline came from a successful metadata sync."""
        return self._synced

    def _set_baseline(self, position: Position) -> None:
        self._baseline = position
        self._cos_base_lat = math.cos(math.radians(position.latitude))

    def observe_position(self, lat: float, lon: float) -> None:
        """Update the displacement estimate with a new sample."""
        if not _is_fix(lat, lon):
            return
        self._last = Position(latitude=lat, longitude=lon)
        if self._baseline is None:
            self._set_baseline(self._last)
            self._distance = 0.0
            return
        self._distance = equirectangular_distance(
            self._baseline.latitude,
            self._baseline.longitude,
            lat,
            lon,
            cos_base_lat=self._cos_base_lat,
        )

    def distance_since_baseline(self) -> float:
        return self._distance

    def commit(self, lat: float, lon: float) -> None:
        """Record a successful sync at (lat, lon): new baseline, distance 0."""
        self._set_baseline(Position(latitude=lat, longitude=lon))
        self._distance = 0.0
        self._synced = True

    def is_due(self, threshold: float, *, force: bool = False) -> bool:
        if force or not self._synced:
            return True
        return self._distance >= threshold

    def restore(self, baseline: Position | None, distance: float, *, synced: bool) -> None:
        """Load persisted state."""
        if baseline is not None and not baseline.is_fix:
            baseline = None
        if baseline is None:
            self._baseline = None
            self._cos_base_lat = 1.0
            self._distance = 0.0
            self._synced = False
            return
        self._set_baseline(baseline)
        self._distance = max(0.0, float(distance))
        self._synced = synced
