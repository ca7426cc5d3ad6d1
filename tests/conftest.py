from __future__ import annotations

import math

import pytest

from tripsim.geometry import EARTH_RADIUS_KM, GeoPoint
from tripsim.scheduler import VirtualClockScheduler


def north_of(origin: GeoPoint, km: float) -> GeoPoint:
    """Point ``km`` due north of ``origin`` along a meridian."""

    return GeoPoint(origin.lat + math.degrees(km / EARTH_RADIUS_KM), origin.lng)


def straight_route(count: int, spacing_km: float, origin: GeoPoint = GeoPoint(6.9271, 79.8612)):
    points = [origin]
    for _ in range(count - 1):
        points.append(north_of(points[-1], spacing_km))
    return points


class FakeMarker:
    def __init__(self, position=None):
        self.positions = [] if position is None else [position]

    def set_position(self, position):
        self.positions.append(position)


class FakeMap:
    def __init__(self, zoom=12):
        self.zoom = zoom
        self.centers = []
        self.zoom_calls = []
        self.markers = []

    def set_center(self, point):
        self.centers.append(point)

    def get_zoom(self):
        return self.zoom

    def set_zoom(self, zoom):
        self.zoom_calls.append(zoom)
        self.zoom = zoom

    def create_marker(self, position):
        marker = FakeMarker(position)
        self.markers.append(marker)
        return marker


class RecordingScheduler(VirtualClockScheduler):
    def __init__(self):
        super().__init__()
        self.delays = []

    def call_later(self, delay, callback, *args):
        self.delays.append(delay)
        return super().call_later(delay, callback, *args)


@pytest.fixture
def scheduler():
    return RecordingScheduler()


@pytest.fixture
def fake_map():
    return FakeMap()
