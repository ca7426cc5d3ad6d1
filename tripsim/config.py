"""Configuration loading utilities for the trip simulator."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional
import json

from .geometry import GeoPoint, to_geopoint
from .simulation import DEFAULT_REPORT_INTERVAL_MS, DEFAULT_SPEED_KMH


@dataclass
class SimulationConfig:
    """Top-level configuration for a simulated trip."""

    path: List[GeoPoint] = field(default_factory=list)
    title: str = ""
    speed_kmh: float = DEFAULT_SPEED_KMH
    booking_id: Optional[str] = None
    tracking_url: Optional[str] = None
    report_interval_ms: float = DEFAULT_REPORT_INTERVAL_MS
    initial_zoom: float = 12.0
    output_path: Path = Path("trip.mp4")
    width: int = 1280
    height: int = 720
    frame_rate: int = 30
    pause_at_end: float = 1.0

    @staticmethod
    def from_mapping(data: Dict[str, Any]) -> "SimulationConfig":
        path_data = data.get("path") or data.get("points") or []
        if not isinstance(path_data, Iterable) or isinstance(path_data, (str, bytes, dict)):
            raise ValueError("Path must be provided as a list of points.")

        try:
            path = [to_geopoint(item) for item in path_data]
        except ValueError as exc:
            raise ValueError(f"Invalid path point: {exc}") from exc
        if not path:
            raise ValueError("At least one path point is required to run a simulation.")

        booking_id = data.get("booking_id", data.get("bookingId"))
        output_path = data.get("output") or data.get("output_path") or "trip.mp4"

        try:
            return SimulationConfig(
                path=path,
                title=data.get("title", ""),
                speed_kmh=float(data.get("speed_kmh", data.get("speed")) or DEFAULT_SPEED_KMH),
                booking_id=str(booking_id) if booking_id is not None else None,
                tracking_url=data.get("tracking_url"),
                report_interval_ms=float(data.get("report_interval_ms", DEFAULT_REPORT_INTERVAL_MS)),
                initial_zoom=float(data.get("initial_zoom", data.get("zoom", 12.0))),
                output_path=Path(output_path),
                width=int(data.get("width", 1280)),
                height=int(data.get("height", 720)),
                frame_rate=int(data.get("frame_rate", data.get("fps", 30))),
                pause_at_end=float(data.get("pause_at_end", 1.0)),
            )
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid numeric setting in configuration: {exc}") from exc


def _load_yaml(path: Path) -> Dict[str, Any]:
    import yaml

    with path.open("r", encoding="utf8") as handle:
        return yaml.safe_load(handle)


def load_config(path: Path) -> SimulationConfig:
    """Load a :class:`SimulationConfig` from a JSON or YAML file."""

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(path)

    if path.suffix.lower() in {".yaml", ".yml"}:
        raw = _load_yaml(path)
    else:
        with path.open("r", encoding="utf8") as handle:
            raw = json.load(handle)

    if not isinstance(raw, dict):
        raise ValueError("Configuration file must contain a mapping at the top level.")

    return SimulationConfig.from_mapping(raw)
