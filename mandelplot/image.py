from __future__ import annotations

import os

import numpy as np
from PIL import Image, ImageDraw

from mandelplot.bounds import PlotBounds
from mandelplot.engine.plot import CHANNELS, Plot

AXIS_COLOR = (255, 0, 0, 255)


def to_image(plot: Plot) -> Image.Image:
    """Copy the plot's pixel buffer into an RGBA image."""
    return Image.frombytes("RGBA", (plot.pixel_width, plot.pixel_height), plot.pixels().tobytes())


def array_to_image(pixels: np.ndarray) -> Image.Image:
    if pixels.ndim != 3 or pixels.shape[2] != CHANNELS or pixels.dtype != np.uint8:
        raise ValueError(f"Expected a (height, width, 4) uint8 array, got {pixels.shape} {pixels.dtype}")
    height, width = pixels.shape[:2]
    return Image.frombytes("RGBA", (width, height), np.ascontiguousarray(pixels).tobytes())


def draw_axes(img: Image.Image, bounds: PlotBounds, axis_width: int = 1) -> Image.Image:
    """Draw the real and imaginary axes in red where they cross the region."""
    width, height = img.size
    draw = ImageDraw.Draw(img)
    if bounds.min_real < 0 < bounds.max_real:
        x = int(-bounds.min_real / bounds.real_range * width)
        draw.rectangle([x, 0, x + axis_width - 1, height - 1], fill=AXIS_COLOR)
    if bounds.min_imag < 0 < bounds.max_imag:
        y = int(bounds.max_imag / bounds.imag_range * height)
        draw.rectangle([0, y, width - 1, y + axis_width - 1], fill=AXIS_COLOR)
    return img


def save_png(img: Image.Image, path: str) -> str:
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    img.save(path, format="PNG", optimize=True)
    return path
