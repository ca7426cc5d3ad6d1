"""Matplotlib map view and video recorder for simulated trips."""
from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence, Tuple

import imageio.v2 as imageio
import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
from matplotlib.offsetbox import AnnotationBbox, OffsetImage
import numpy as np

from .geometry import GeoPoint, bearing_degrees, normalise_path, to_geopoint
from .icons import make_marker_icon, rotate_icon

logger = logging.getLogger(__name__)

TILE_SIZE_PX = 256
Extent = Tuple[float, float, float, float]


def view_extent(center: GeoPoint, zoom: float, width: int, height: int) -> Extent:
    """Return ``(lng_min, lng_max, lat_min, lat_max)`` visible at a web-map zoom level.

    At zoom ``z`` one 256 px tile spans ``360 / 2**z`` degrees of longitude;
    latitude is shrunk by ``cos(lat)`` to keep the aspect roughly conformal.
    """

    degrees_per_px = 360.0 / (2.0**zoom) / TILE_SIZE_PX
    half_lng = width * degrees_per_px / 2.0
    half_lat = height * degrees_per_px * math.cos(math.radians(center.lat)) / 2.0
    return (center.lng - half_lng, center.lng + half_lng, center.lat - half_lat, center.lat + half_lat)


class Marker:
    """Driver marker drawn on a :class:`MapView`, leaving a trail behind it."""

    def __init__(self, view: "MapView", position: GeoPoint, icon_zoom: float = 1.0) -> None:
        self._view = view
        self._icon = make_marker_icon()
        self._image_box = OffsetImage(self._icon, zoom=icon_zoom)
        self._artist = AnnotationBbox(self._image_box, (position.lng, position.lat), frameon=False, zorder=5)
        view.ax.add_artist(self._artist)
        self.position = position
        self.trail: List[GeoPoint] = [position]

    def set_position(self, position: GeoPoint) -> None:
        position = to_geopoint(position)
        if position != self.position:
            self._image_box.set_data(rotate_icon(self._icon, bearing_degrees(self.position, position)))
        self.position = position
        self.trail.append(position)
        self._artist.xy = (position.lng, position.lat)
        self._view.draw_trail(self.trail)


class MapView:
    """Headless map view with the centre/zoom surface of a web map widget."""

    def __init__(
        self,
        path: Sequence[Any],
        width: int = 1280,
        height: int = 720,
        zoom: float = 12.0,
        title: str = "",
    ) -> None:
        self.width = width
        self.height = height
        self._zoom = float(zoom)
        points = normalise_path(path)
        self._center = points[0] if points else GeoPoint(0.0, 0.0)
        self._setup_canvas(points, title)
        self._apply_extent()

    # ------------------------------------------------------------------
    # Map capability
    # ------------------------------------------------------------------

    def set_center(self, point: GeoPoint) -> None:
        self._center = to_geopoint(point)
        self._apply_extent()

    def get_center(self) -> GeoPoint:
        return self._center

    def get_zoom(self) -> float:
        return self._zoom

    def set_zoom(self, zoom: float) -> None:
        self._zoom = float(zoom)
        self._apply_extent()

    def create_marker(self, position: GeoPoint) -> Marker:
        return Marker(self, to_geopoint(position), icon_zoom=max(self.width, self.height) / 2560.0)

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------

    def _setup_canvas(self, points: Sequence[GeoPoint], title: str) -> None:
        dpi = 100
        self.fig, self.ax = plt.subplots(figsize=(self.width / dpi, self.height / dpi), dpi=dpi)
        self.fig.patch.set_facecolor("#06142a")
        self.ax.set_facecolor("#0a1f3f")
        self.ax.set_xticks([])
        self.ax.set_yticks([])

        self.ax.plot(
            [p.lng for p in points],
            [p.lat for p in points],
            color="#66ff99",
            linewidth=1.5,
            linestyle="--",
        )
        self._trail_line, = self.ax.plot([], [], color="#ff5555", linewidth=3, solid_capstyle="round")

        if title:
            self.ax.set_title(title, color="white", fontsize=14, pad=12)
        self.fig.subplots_adjust(left=0, right=1, bottom=0, top=0.94 if title else 1)

    def _apply_extent(self) -> None:
        lng_min, lng_max, lat_min, lat_max = self.extent()
        self.ax.set_xlim(lng_min, lng_max)
        self.ax.set_ylim(lat_min, lat_max)

    def extent(self) -> Extent:
        return view_extent(self._center, self._zoom, self.width, self.height)

    def draw_trail(self, trail: Sequence[GeoPoint]) -> None:
        self._trail_line.set_data([p.lng for p in trail], [p.lat for p in trail])

    def to_rgba(self) -> np.ndarray:
        self.fig.canvas.draw()
        return np.asarray(self.fig.canvas.buffer_rgba()).copy()

    def close(self) -> None:
        plt.close(self.fig)


class FrameRecorder:
    """Capture one frame per simulation step and write them as a video.

    Frames are repeated so that playback time matches the simulated time
    between steps, read from ``clock``.
    """

    def __init__(
        self,
        view: MapView,
        output_path: Path,
        clock: Callable[[], float],
        frame_rate: int = 30,
        writer: Any = None,
    ) -> None:
        self.view = view
        self.output_path = Path(output_path)
        self.frame_rate = frame_rate
        self._clock = clock
        self._writer = writer
        self._previous: Optional[np.ndarray] = None
        self._previous_time = 0.0
        self.frames_written = 0

    def open(self) -> None:
        if self._writer is not None:
            return
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._writer = imageio.get_writer(
                self.output_path,
                fps=self.frame_rate,
                codec="libx264",
                format="FFMPEG",
                macro_block_size=None,
                quality=8,
            )
        except ImportError as exc:
            raise ImportError(
                "FFMPEG support is required to export videos. Install the "
                "'imageio-ffmpeg' package (for example via 'pip install "
                "imageio-ffmpeg') and try again."
            ) from exc

    def capture(self, position: Optional[GeoPoint] = None) -> None:
        """Record the current view. Usable directly as a simulation step callback."""

        if self._writer is None:
            self.open()
        now = self._clock()
        if self._previous is not None:
            self._append(self._previous, now - self._previous_time)
        self._previous = self.view.to_rgba()
        self._previous_time = now

    def _append(self, image: np.ndarray, seconds: float) -> None:
        repeats = max(1, int(round(seconds * self.frame_rate)))
        for _ in range(repeats):
            self._writer.append_data(image)
        self.frames_written += repeats

    def close(self, hold_seconds: float = 1.0) -> Path:
        if self._previous is not None:
            self._append(self._previous, hold_seconds)
            self._previous = None
        if self._writer is not None:
            self._writer.close()
        self.view.close()
        logger.info("Wrote %d frames to %s", self.frames_written, self.output_path)
        return self.output_path
