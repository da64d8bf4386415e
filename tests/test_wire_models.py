from __future__ import annotations

import math

import pytest
from pydantic import ValidationError

from skwindy._constants import kelvin_to_celsius, radians_to_degrees, ratio_to_percent
from skwindy.config import ReporterConfig, SensorHeights
from skwindy.models import ObservationSnapshot, Position, StationMetadata, safe_float, unwrap_value


def test_unit_conversions() -> None:
    assert kelvin_to_celsius(288.15) == 15.0
    assert kelvin_to_celsius(273.15 - 3.04) == -3.0
    assert ratio_to_percent(0.654) == 65
    assert radians_to_degrees(math.pi / 2) == 90
    assert radians_to_degrees(-math.pi / 2) == 270
    # Rounds up to 360 and wraps.
    assert radians_to_degrees(2 * math.pi - 1e-6) == 0


def test_safe_float_rejects_unusable_values() -> None:
    assert safe_float("3.5") == 3.5
    assert safe_float(7) == 7.0
    for value in (None, "", True, "x", float("inf"), float("nan"), [1]):
        assert safe_float(value) is None


def test_unwrap_value_accepts_full_tree_wrapper() -> None:
    assert unwrap_value({"value": 4.2, "timestamp": "2026-01-01T00:00:00Z"}) == 4.2
    assert unwrap_value(4.2) == 4.2
    assert unwrap_value({"latitude": 1.0}) == {"latitude": 1.0}


def test_snapshot_rounds_speeds_and_omits_absent_fields() -> None:
    snapshot = ObservationSnapshot(wind=5.04, gust=12.349, temp=15.0, rh=65)

    assert snapshot.to_params() == {"wind": 5.0, "gust": 12.3, "temp": 15.0, "rh": 65}
    assert snapshot.flags() == ["T", "W", "G", "H"]
    assert not snapshot.is_empty


def test_empty_snapshot() -> None:
    snapshot = ObservationSnapshot()
    assert snapshot.is_empty
    assert snapshot.to_params() == {}
    assert snapshot.flags() == []


def test_snapshot_rejects_out_of_range_direction() -> None:
    with pytest.raises(ValidationError):
        ObservationSnapshot(winddir=360)


@pytest.mark.parametrize(
    "value",
    [
        None,
        {},
        {"latitude": "x", "longitude": 10.0},
        {"latitude": 91.0, "longitude": 10.0},
        {"latitude": 0.0, "longitude": 0.0},
        "60,10",
    ],
)
def test_position_from_value_rejects_invalid(value: object) -> None:
    assert Position.from_value(value) is None


def test_position_from_value_accepts_wrapped_and_short_keys() -> None:
    expected = Position(latitude=60.1, longitude=10.2)
    assert Position.from_value({"value": {"latitude": 60.1, "longitude": 10.2}}) == expected
    assert Position.from_value({"lat": 60.1, "lon": 10.2}) == expected
    assert Position.model_validate({"lat": 60.1, "lng": 10.2}) == expected


def test_station_metadata_payload() -> None:
    config = ReporterConfig(
        station_id="st-1",
        station_password="pw",
        api_key="key",
        station_name="SV Example",
        heights=SensorHeights(elevation_m=0.4, temperature_agl_m=2.6, wind_agl_m=12.2),
    )
    metadata = StationMetadata.from_config(config, Position(latitude=60.1234567, longitude=-10.9876543))

    assert metadata.to_payload() == {
        "lat": 60.12346,
        "lon": -10.98765,
        "name": "SV Example",
        "type": "Boat (Signal K)",
        "share_option": "public",
        "elev_m": 0,
        "agl_temp": 3,
        "agl_wind": 12,
    }
    assert metadata.position == Position(latitude=60.12346, longitude=-10.98765)


def test_station_metadata_keeps_website() -> None:
    metadata = StationMetadata(lat=1.0, lon=2.0, url=" https://example.org ")
    assert metadata.to_payload()["url"] == "https://example.org"
    assert "url" not in StationMetadata(lat=1.0, lon=2.0, url="  ").to_payload()
