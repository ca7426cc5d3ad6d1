"""Driver trip simulation package."""

from .config import SimulationConfig, load_config
from .geometry import GeoPoint, haversine_km, step_delay_ms, to_geopoint
from .scheduler import VirtualClockScheduler
from .simulation import Simulation

__all__ = [
    "GeoPoint",
    "Simulation",
    "SimulationConfig",
    "VirtualClockScheduler",
    "haversine_km",
    "load_config",
    "step_delay_ms",
    "to_geopoint",
]
