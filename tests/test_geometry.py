from __future__ import annotations

from types import SimpleNamespace

import pytest

from tripsim.geometry import (
    GeoPoint,
    bearing_degrees,
    haversine_km,
    normalise_path,
    step_delay_ms,
    to_geopoint,
)

from .conftest import north_of


def test_haversine_zero_distance():
    point = GeoPoint(6.9271, 79.8612)
    assert haversine_km(point, point) == 0.0


def test_haversine_one_degree_of_latitude():
    # 6371 km * pi / 180
    assert haversine_km(GeoPoint(0.0, 0.0), GeoPoint(1.0, 0.0)) == pytest.approx(111.19493, rel=1e-6)


def test_haversine_known_city_pair():
    colombo = GeoPoint(6.9271, 79.8612)
    kandy = GeoPoint(7.2906, 80.6337)
    assert haversine_km(colombo, kandy) == pytest.approx(94.3, abs=0.5)


def test_bearing_due_north_and_east():
    origin = GeoPoint(0.0, 0.0)
    assert bearing_degrees(origin, north_of(origin, 1.0)) == pytest.approx(0.0, abs=1e-9)
    assert bearing_degrees(origin, GeoPoint(0.0, 1.0)) == pytest.approx(90.0)


@pytest.mark.parametrize(
    "distance_km, speed_kmh, expected_ms",
    [
        (0.1, 50, 2000.0),
        (0.001, 50, 300.0),
        (50.0, 50, 2000.0),
        (1.0, 50, 2000.0),
        (0.01, 50, 720.0),
        (0.01, 100, 360.0),
        (0.0, 50, 300.0),
    ],
)
def test_step_delay_is_clamped(distance_km, speed_kmh, expected_ms):
    assert step_delay_ms(distance_km, speed_kmh) == pytest.approx(expected_ms)


@pytest.mark.parametrize(
    "raw",
    [
        {"lat": 1.5, "lng": 2.5},
        {"latitude": 1.5, "longitude": 2.5},
        {"lat": "1.5", "lon": "2.5"},
        (1.5, 2.5),
        [1.5, 2.5],
        SimpleNamespace(lat=1.5, lng=2.5),
        SimpleNamespace(lat=lambda: 1.5, lng=lambda: 2.5),
        SimpleNamespace(latitude=1.5, longitude=2.5),
        GeoPoint(1.5, 2.5),
    ],
)
def test_to_geopoint_accepts_supported_shapes(raw):
    assert to_geopoint(raw) == GeoPoint(1.5, 2.5)


@pytest.mark.parametrize(
    "raw",
    [
        {"lat": 1.5},
        (1.5, 2.5, 3.5),
        "1.5,2.5",
        {"lat": "north", "lng": 2.5},
        object(),
    ],
)
def test_to_geopoint_rejects_unreadable_points(raw):
    with pytest.raises(ValueError):
        to_geopoint(raw)


def test_normalise_path():
    assert normalise_path([(1, 2), {"lat": 3, "lng": 4}]) == [GeoPoint(1.0, 2.0), GeoPoint(3.0, 4.0)]
