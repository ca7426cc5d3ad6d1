"""Geospatial helpers for the trip simulator."""
from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, List, Optional

EARTH_RADIUS_KM = 6371.0
MS_PER_HOUR = 3_600_000.0

MIN_STEP_DELAY_MS = 300.0
MAX_STEP_DELAY_MS = 2000.0


@dataclass(frozen=True)
class GeoPoint:
    """A latitude/longitude pair in decimal degrees."""

    lat: float
    lng: float

    def as_dict(self) -> dict:
        return {"lat": self.lat, "lng": self.lng}


def _read_field(point: Any, *names: str) -> Optional[Any]:
    for name in names:
        if hasattr(point, name):
            value = getattr(point, name)
            # Some map libraries expose coordinates as zero-argument accessors.
            return value() if callable(value) else value
    return None


def to_geopoint(point: Any) -> GeoPoint:
    """Normalise any supported point representation into a :class:`GeoPoint`.

    Accepted inputs are objects with ``lat``/``lng`` (or ``lon``,
    ``latitude``/``longitude``) attributes holding numbers or zero-argument
    accessors, mappings with the same keys, and ``(lat, lng)`` sequences.
    """

    if isinstance(point, GeoPoint):
        return point

    if isinstance(point, Mapping):
        lat = point.get("lat", point.get("latitude"))
        lng = point.get("lng", point.get("lon", point.get("longitude")))
    elif isinstance(point, Sequence) and not isinstance(point, (str, bytes)):
        if len(point) != 2:
            raise ValueError(f"Expected a (lat, lng) pair, got {len(point)} values.")
        lat, lng = point
    else:
        lat = _read_field(point, "lat", "latitude")
        lng = _read_field(point, "lng", "lon", "longitude")

    if lat is None or lng is None:
        raise ValueError(f"Cannot read latitude/longitude from {point!r}.")

    try:
        return GeoPoint(float(lat), float(lng))
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Non-numeric coordinates in {point!r}.") from exc


def haversine_km(a: GeoPoint, b: GeoPoint) -> float:
    """Compute the great-circle distance between two points in kilometres."""

    lat1, lng1 = math.radians(a.lat), math.radians(a.lng)
    lat2, lng2 = math.radians(b.lat), math.radians(b.lng)
    sin_lat = math.sin((lat2 - lat1) / 2.0)
    sin_lng = math.sin((lng2 - lng1) / 2.0)
    h = sin_lat**2 + math.cos(lat1) * math.cos(lat2) * sin_lng**2
    central_angle = 2.0 * math.atan2(math.sqrt(h), math.sqrt(1.0 - h))
    return EARTH_RADIUS_KM * central_angle


def bearing_degrees(a: GeoPoint, b: GeoPoint) -> float:
    """Return the initial bearing from ``a`` to ``b`` in degrees."""

    lat1, lng1 = math.radians(a.lat), math.radians(a.lng)
    lat2, lng2 = math.radians(b.lat), math.radians(b.lng)
    delta_lng = lng2 - lng1
    x = math.sin(delta_lng) * math.cos(lat2)
    y = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(delta_lng)
    bearing = math.degrees(math.atan2(x, y))
    return (bearing + 360.0) % 360.0


def step_delay_ms(
    distance_km: float,
    speed_kmh: float,
    min_delay_ms: float = MIN_STEP_DELAY_MS,
    max_delay_ms: float = MAX_STEP_DELAY_MS,
) -> float:
    """Return the time to cover ``distance_km`` at ``speed_kmh``, clamped to the tick bounds."""

    travel_ms = distance_km / speed_kmh * MS_PER_HOUR
    return max(min_delay_ms, min(max_delay_ms, travel_ms))


def normalise_path(points: Sequence[Any]) -> List[GeoPoint]:
    return [to_geopoint(point) for point in points]
