"""Helpers for drawing the driver marker icon."""
from __future__ import annotations

import numpy as np
from PIL import Image, ImageDraw

DRIVER_FILL = "#2962ff"
DRIVER_STROKE = "#0d47a1"


def make_marker_icon(size: int = 40, fill: str = DRIVER_FILL, stroke: str = DRIVER_STROKE) -> np.ndarray:
    """Return an RGBA array of a filled circle with a heading notch pointing north."""

    image = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    draw = ImageDraw.Draw(image)
    stroke_width = max(1, size // 20)
    draw.ellipse([(0, 0), (size - 1, size - 1)], fill=fill, outline=stroke, width=stroke_width)

    centre = size / 2.0
    notch = size / 4.0
    draw.polygon(
        [(centre, size * 0.12), (centre - notch / 2.0, centre), (centre + notch / 2.0, centre)],
        fill="white",
    )
    return np.array(image)


def rotate_icon(icon: np.ndarray, bearing: float) -> np.ndarray:
    """Rotate the icon array so that it faces the given bearing."""

    image = Image.fromarray(icon)
    rotated = image.rotate(-bearing, resample=Image.BICUBIC, expand=True)
    return np.array(rotated)
