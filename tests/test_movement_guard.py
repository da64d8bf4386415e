from __future__ import annotations

import math

import pytest

from skwindy.models.position import Position
from skwindy.state.movement import MovementGuard, equirectangular_distance

_METERS_PER_DEGREE = 6_371_000.0 * math.pi / 180.0


def _north(lat: float, meters: float) -> float:
    return lat + math.degrees(meters / 6_371_000.0)


def test_distance_one_degree_latitude() -> None:
    assert equirectangular_distance(0.0, 0.0, 1.0, 0.0) == pytest.approx(_METERS_PER_DEGREE)


def test_distance_longitude_scaled_by_baseline_cosine() -> None:
    distance = equirectangular_distance(60.0, 10.0, 60.0, 11.0)
    assert distance == pytest.approx(_METERS_PER_DEGREE * 0.5, rel=1e-9)


def test_distance_uses_cached_cosine() -> None:
    assert equirectangular_distance(60.0, 10.0, 60.0, 11.0, cos_base_lat=1.0) == pytest.approx(_METERS_PER_DEGREE)


def test_first_sample_seeds_unsynced_baseline() -> None:
    guard = MovementGuard()
    guard.observe_position(60.0, 10.0)

    assert guard.baseline == Position(latitude=60.0, longitude=10.0)
    assert guard.distance_since_baseline() == 0.0
    assert not guard.synced
    # A seeded baseline was never sent; the first cycle must sync it.
    assert guard.is_due(300.0)


def test_no_fix_sentinel_is_ignored() -> None:
    guard = MovementGuard()
    guard.observe_position(0.0, 0.0)
    assert guard.baseline is None
    assert guard.last_position is None

    guard.commit(60.0, 10.0)
    guard.observe_position(_north(60.0, 100.0), 10.0)
    before = guard.distance_since_baseline()
    guard.observe_position(0.0, 0.0)
    assert guard.distance_since_baseline() == before


def test_non_finite_samples_are_ignored() -> None:
    guard = MovementGuard()
    guard.observe_position(math.nan, 10.0)
    guard.observe_position(60.0, math.inf)
    assert guard.baseline is None


def test_due_after_threshold_crossed() -> None:
    guard = MovementGuard()
    guard.commit(60.0, 10.0)

    guard.observe_position(_north(60.0, 100.0), 10.0)
    assert guard.distance_since_baseline() == pytest.approx(100.0, rel=1e-6)
    assert not guard.is_due(300.0)

    guard.observe_position(_north(60.0, 500.0), 10.0)
    assert guard.distance_since_baseline() == pytest.approx(500.0, rel=1e-6)
    assert guard.is_due(300.0)


def test_force_makes_update_due() -> None:
    guard = MovementGuard()
    guard.commit(60.0, 10.0)
    assert not guard.is_due(300.0)
    assert guard.is_due(300.0, force=True)


def test_distance_is_from_baseline_not_accumulated() -> None:
    guard = MovementGuard()
    guard.commit(60.0, 10.0)
    guard.observe_position(_north(60.0, 200.0), 10.0)
    guard.observe_position(_north(60.0, 50.0), 10.0)
    assert guard.distance_since_baseline() == pytest.approx(50.0, rel=1e-6)


def test_commit_resets_distance_and_is_idempotent() -> None:
    guard = MovementGuard()
    guard.commit(60.0, 10.0)
    guard.observe_position(_north(60.0, 500.0), 10.0)

    new_lat = _north(60.0, 500.0)
    guard.commit(new_lat, 10.0)
    first = (guard.baseline, guard.distance_since_baseline(), guard.synced)
    guard.commit(new_lat, 10.0)

    assert (guard.baseline, guard.distance_since_baseline(), guard.synced) == first
    assert guard.distance_since_baseline() == 0.0
    assert guard.synced


def test_restore_round_trip() -> None:
    guard = MovementGuard()
    guard.restore(Position(latitude=60.0, longitude=10.0), 42.0, synced=True)

    assert guard.baseline == Position(latitude=60.0, longitude=10.0)
    assert guard.distance_since_baseline() == 42.0
    assert guard.synced
    assert not guard.is_due(300.0)


def test_restore_drops_no_fix_baseline() -> None:
    guard = MovementGuard()
    guard.restore(Position(latitude=0.0, longitude=0.0), 42.0, synced=True)

    assert guard.baseline is None
    assert guard.distance_since_baseline() == 0.0
    assert not guard.synced
