"""Command line entry point for the trip simulator."""
from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
from typing import Any, Callable, Optional

from .config import SimulationConfig, load_config
from .geometry import GeoPoint
from .renderer import FrameRecorder, MapView
from .scheduler import VirtualClockScheduler
from .simulation import Simulation
from .tracking import TrackingReporter

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Replay a driver trip along a route.")
    parser.add_argument(
        "config",
        type=Path,
        help="Path to the JSON or YAML configuration file containing the route.",
    )
    parser.add_argument("--speed", type=float, help="Average speed in km/h (overrides the configuration).")
    parser.add_argument("--output", type=Path, help="Where to write the rendered video.")
    parser.add_argument(
        "--realtime",
        action="store_true",
        help="Run on the asyncio event loop in wall-clock time instead of replaying instantly.",
    )
    parser.add_argument("--no-render", action="store_true", help="Only log positions; do not render a video.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def _log_position(position: GeoPoint) -> None:
    logger.info("Driver at %.6f, %.6f", position.lat, position.lng)


def build_simulation(
    config: SimulationConfig,
    scheduler: Any,
    clock: Callable[[], float],
    view: Optional[MapView] = None,
    on_step: Optional[Callable[[GeoPoint], Any]] = None,
) -> Simulation:
    reporter = TrackingReporter(config.tracking_url) if config.tracking_url else None
    simulation = Simulation(
        config.path,
        map=view,
        booking_id=config.booking_id,
        on_step=on_step,
        reporter=reporter,
        scheduler=scheduler,
        report_interval_ms=config.report_interval_ms,
        clock=clock,
    )
    simulation.set_speed(config.speed_kmh)
    return simulation


def _make_recorder(config: SimulationConfig, clock: Callable[[], float]) -> FrameRecorder:
    view = MapView(config.path, config.width, config.height, zoom=config.initial_zoom, title=config.title)
    return FrameRecorder(view, config.output_path, clock, frame_rate=config.frame_rate)


def run_offline(config: SimulationConfig, render: bool = True) -> Optional[Path]:
    """Replay the trip on a virtual clock. Returns the video path when rendering."""

    scheduler = VirtualClockScheduler()
    recorder = _make_recorder(config, scheduler.time) if render else None
    simulation = build_simulation(
        config,
        scheduler,
        scheduler.time,
        view=recorder.view if recorder else None,
        on_step=recorder.capture if recorder else _log_position,
    )
    simulation.start()
    scheduler.run()
    logger.info("Trip replayed in %.1f simulated seconds", scheduler.time())
    if recorder is None:
        return None
    return recorder.close(config.pause_at_end)


async def run_realtime(config: SimulationConfig, render: bool = False, poll_seconds: float = 0.1) -> Optional[Path]:
    """Run the trip on the running event loop, waiting out each step delay."""

    loop = asyncio.get_running_loop()
    recorder = _make_recorder(config, loop.time) if render else None
    simulation = build_simulation(
        config,
        loop,
        loop.time,
        view=recorder.view if recorder else None,
        on_step=recorder.capture if recorder else _log_position,
    )
    simulation.start()
    try:
        while simulation.is_simulation_running():
            await asyncio.sleep(poll_seconds)
    finally:
        simulation.stop()
    if recorder is None:
        return None
    return recorder.close(config.pause_at_end)


def main(argv: Optional[list[str]] = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = load_config(args.config)
    if args.speed is not None:
        config.speed_kmh = args.speed
    if args.output is not None:
        config.output_path = args.output

    render = not args.no_render
    if args.realtime:
        output_path = asyncio.run(run_realtime(config, render=render))
    else:
        output_path = run_offline(config, render=render)

    if output_path is not None:
        print(f"Saved animation to {output_path}")
    else:
        print(f"Simulated {len(config.path)} points")


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    main()
