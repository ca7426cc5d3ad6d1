"""Trip simulation: replay a route as timed marker updates on a map."""
from __future__ import annotations

import asyncio
import functools
import logging
import math
import time
from typing import Any, Callable, Optional, Sequence

from .geometry import GeoPoint, haversine_km, step_delay_ms, to_geopoint

logger = logging.getLogger(__name__)

DEFAULT_SPEED_KMH = 50.0
MIN_NAVIGATION_ZOOM = 15
NAVIGATION_ZOOM = 16
DEFAULT_REPORT_INTERVAL_MS = 1000.0
PROGRESS_LOG_EVERY = 10

StepCallback = Callable[[GeoPoint], Any]
PositionReporter = Callable[[str, GeoPoint, Sequence[Any]], Any]


class Simulation:
    """Animate a marker along a pre-computed path at a realistic driving pace.

    Each step moves ``marker`` to the next point of ``path``, recentres ``map``
    and calls ``on_step`` with the point. The delay before the following step is
    the haversine distance to the next point travelled at ``speed_kmh``, clamped
    to 300-2000 ms.

    ``scheduler`` is anything with an asyncio-style ``call_later(seconds,
    callback)``; when omitted, the running asyncio loop is used at ``start()``.
    ``start()`` always replays from the first point. Nothing here raises to the
    caller: bad input and failing collaborators are logged.
    """

    def __init__(
        self,
        path: Optional[Sequence[Any]],
        marker: Any = None,
        map: Any = None,
        booking_id: Optional[str] = None,
        on_step: Optional[StepCallback] = None,
        reporter: Optional[PositionReporter] = None,
        scheduler: Any = None,
        report_interval_ms: float = DEFAULT_REPORT_INTERVAL_MS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.path = path
        self.marker = marker
        self.map = map
        self.booking_id = booking_id
        self.on_step = on_step
        self.reporter = reporter
        self.scheduler = scheduler
        self.report_interval_ms = report_interval_ms
        self.current_index = 0
        self.speed_kmh = DEFAULT_SPEED_KMH
        self.is_running = False
        self._timer = None
        self._active_scheduler = None
        self._run = 0
        self._clock = clock
        self._last_report: Optional[float] = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def start(self) -> None:
        if not self.path:
            logger.error("No path available for simulation")
            return

        if self.is_running:
            logger.info("Simulation is already running")
            return

        scheduler = self.scheduler
        if scheduler is None:
            try:
                scheduler = asyncio.get_running_loop()
            except RuntimeError:
                logger.error("No scheduler supplied and no running event loop; cannot start simulation")
                return
        self._active_scheduler = scheduler

        self.is_running = True
        self._run += 1
        self.current_index = 0
        self._last_report = None

        create_marker = getattr(self.map, "create_marker", None)
        if self.marker is None and create_marker is not None:
            try:
                self.marker = create_marker(to_geopoint(self.path[0]))
            except Exception:
                logger.exception("Cannot place marker at the first path point")

        logger.info("Simulation started with %d points at %.0f km/h", len(self.path), self.speed_kmh)
        self._step()

    def stop(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self.is_running:
            logger.info("Simulation stopped at point %d", self.current_index)
        self.is_running = False

    def set_speed(self, speed_kmh: Any) -> None:
        """Set the speed in km/h used for the next scheduled step (30 city, 80 highway)."""

        try:
            speed = float(speed_kmh) if speed_kmh else DEFAULT_SPEED_KMH
        except (TypeError, ValueError):
            speed = DEFAULT_SPEED_KMH
        if not speed > 0 or math.isinf(speed):
            speed = DEFAULT_SPEED_KMH
        self.speed_kmh = speed

    def set_booking_id(self, booking_id: Optional[str]) -> None:
        self.booking_id = booking_id
        logger.info("Booking id set to %s", booking_id)

    def get_current_position(self) -> Optional[GeoPoint]:
        if self.path and self.current_index < len(self.path):
            return to_geopoint(self.path[self.current_index])
        return None

    def get_full_path(self) -> Optional[Sequence[Any]]:
        return self.path

    def is_simulation_running(self) -> bool:
        return self.is_running

    # ------------------------------------------------------------------
    # Stepping
    # ------------------------------------------------------------------

    def _on_timer(self) -> None:
        self._timer = None
        self._step()

    def _step(self) -> None:
        if not self.is_running or not self.path or self.current_index >= len(self.path):
            self.stop()
            return

        try:
            position = to_geopoint(self.path[self.current_index])
        except ValueError as exc:
            logger.error("Invalid path point at index %d: %s", self.current_index, exc)
            self.stop()
            return

        run = self._run
        self._move_marker(position)
        self._follow_on_map(position)

        if self.on_step is not None:
            try:
                self.on_step(position)
            except Exception:
                logger.exception("Navigation step callback failed at point %d", self.current_index)

        # The step callback restarted the run; that run owns the cursor and timer now.
        if self._run != run:
            return

        self._report_position(position)

        self.current_index += 1

        if self.current_index % PROGRESS_LOG_EVERY == 0:
            logger.debug("Simulation progress: %d/%d", self.current_index, len(self.path))

        # The step callback may have stopped the run.
        if not self.is_running:
            return

        if self.current_index < len(self.path):
            try:
                delay = self._next_delay_ms(position)
            except ValueError as exc:
                logger.error("Invalid path point at index %d: %s", self.current_index, exc)
                self.stop()
                return
            if self._timer is not None:
                self._timer.cancel()
            self._timer = self._active_scheduler.call_later(delay / 1000.0, self._on_timer)
        else:
            self.stop()
            logger.info("Simulation completed - reached end of path")

    def _move_marker(self, position: GeoPoint) -> None:
        if self.marker is None:
            return
        try:
            self.marker.set_position(position)
        except Exception:
            logger.exception("Failed to move marker at point %d", self.current_index)

    def _follow_on_map(self, position: GeoPoint) -> None:
        if self.map is None:
            return
        try:
            self.map.set_center(position)
            zoom = self.map.get_zoom()
            # An uninitialised map reports no zoom; leave it alone.
            if isinstance(zoom, (int, float)) and zoom < MIN_NAVIGATION_ZOOM:
                self.map.set_zoom(NAVIGATION_ZOOM)
        except Exception:
            logger.exception("Failed to update map view at point %d", self.current_index)

    def _next_delay_ms(self, position: GeoPoint) -> float:
        next_position = to_geopoint(self.path[self.current_index])
        return step_delay_ms(haversine_km(position, next_position), self.speed_kmh)

    def _report_position(self, position: GeoPoint) -> None:
        if not self.booking_id or self.reporter is None:
            return

        now = self._clock()
        if self._last_report is not None and (now - self._last_report) * 1000.0 < self.report_interval_ms:
            return
        self._last_report = now

        # Reporters may block on the network; keep them off a running event loop.
        if isinstance(self._active_scheduler, asyncio.AbstractEventLoop):
            future = self._active_scheduler.run_in_executor(
                None, functools.partial(self.reporter, self.booking_id, position, self.path)
            )
            future.add_done_callback(_log_failed_report)
            return

        try:
            self.reporter(self.booking_id, position, self.path)
        except Exception as exc:
            logger.warning("Failed to send position update, continuing simulation: %s", exc)


def _log_failed_report(future: "asyncio.Future[Any]") -> None:
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        logger.warning("Failed to send position update, continuing simulation: %s", exc)
