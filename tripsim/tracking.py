"""Vehicle position reporting to the booking tracking API."""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional, Sequence

import requests

from .geometry import GeoPoint, normalise_path

logger = logging.getLogger(__name__)

UPDATE_POSITION_ENDPOINT = "/api/tracking/update-position"


class TrackingError(RuntimeError):
    """Raised when a position update cannot be delivered."""


def build_position_update(
    booking_id: str, position: GeoPoint, full_path: Optional[Sequence[Any]] = None
) -> Dict[str, Any]:
    """Return the request body expected by the tracking API.

    Coordinates travel as JSON-encoded strings, not nested objects.
    """

    path_coords = None
    if full_path:
        path_coords = json.dumps([point.as_dict() for point in normalise_path(full_path)])
    return {
        "bookingId": booking_id,
        "vehiclePosition": json.dumps(position.as_dict()),
        "fullPathCoords": path_coords,
    }


class TrackingReporter:
    """Post simulated vehicle positions to the tracking service."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.url = base_url.rstrip("/") + UPDATE_POSITION_ENDPOINT
        self.timeout = timeout
        self._session = session or requests.Session()

    def __call__(
        self, booking_id: str, position: GeoPoint, full_path: Optional[Sequence[Any]] = None
    ) -> Any:
        payload = build_position_update(booking_id, position, full_path)
        try:
            response = self._session.post(self.url, json=payload, timeout=self.timeout)
            response.raise_for_status()
            body = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise TrackingError(f"Position update for booking {booking_id} failed: {exc}") from exc

        if isinstance(body, dict) and body.get("success"):
            logger.debug("Position update accepted for booking %s", booking_id)
        else:
            logger.warning("Tracking service rejected position update for booking %s", booking_id)
        return body
