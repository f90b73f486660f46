from __future__ import annotations

import math
from numbers import Integral, Real
from typing import Tuple

import numpy as np

from mandelplot.engine.kernels import fill_pixels, fill_pixels_parallel
from mandelplot.errors import CapacityExceeded, InvalidArgument
from mandelplot.util.hooks import timer
from mandelplot.util.logging_setup import get_logger

CHANNELS = 4

# Byte offsets into the buffer are unsigned 32-bit.
MAX_BUFFER_BYTES = int(np.iinfo(np.uint32).max)


def _require_count(name: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise InvalidArgument(f"{name} must be an integer, got {value!r}")
    if value < 1:
        raise InvalidArgument(f"{name} must be >= 1, got {value}")
    return int(value)


def _require_finite(name: str, value) -> float:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidArgument(f"{name} must be a real number, got {value!r}")
    value = float(value)
    if not math.isfinite(value):
        raise InvalidArgument(f"{name} must be finite, got {value}")
    return value


def _require_positive(name: str, value) -> float:
    value = _require_finite(name, value)
    if value <= 0.0:
        raise InvalidArgument(f"{name} must be > 0, got {value}")
    return value


class Plot:
    """
    Escape-time raster of the Mandelbrot set over a rectangle of the plane.

    The pixel buffer is allocated once here and overwritten by every
    `calc_pixels()` call. Callers only ever get read-only views of it;
    those views see the new contents after the next compute.
    """

    def __init__(
        self,
        pixel_width: int,
        pixel_height: int,
        min_real: float,
        real_range: float,
        min_imag: float,
        imag_range: float,
        max_iterations: int,
        divergence_bound: float,
        *,
        parallel: bool = False,
    ) -> None:
        self.pixel_width = _require_count("pixel_width", pixel_width)
        self.pixel_height = _require_count("pixel_height", pixel_height)
        self.min_real = _require_finite("min_real", min_real)
        self.real_range = _require_positive("real_range", real_range)
        self.min_imag = _require_finite("min_imag", min_imag)
        self.imag_range = _require_positive("imag_range", imag_range)
        self.max_iterations = _require_count("max_iterations", max_iterations)
        self.divergence_bound = _require_positive("divergence_bound", divergence_bound)
        self.parallel = bool(parallel)

        num_bytes = self.pixel_width * self.pixel_height * CHANNELS
        if num_bytes > MAX_BUFFER_BYTES:
            raise CapacityExceeded(
                f"{self.pixel_width}x{self.pixel_height} plot needs {num_bytes} bytes, "
                f"limit is {MAX_BUFFER_BYTES}"
            )

        self._pixels = np.zeros((self.pixel_height, self.pixel_width, CHANNELS), dtype=np.uint8)
        get_logger("engine").debug(
            "Plot %sx%s re=[%s, %s] im=[%s, %s] iter=%s bound=%s",
            self.pixel_width, self.pixel_height, self.min_real, self.max_real,
            self.min_imag, self.max_imag, self.max_iterations, self.divergence_bound,
        )

    @classmethod
    def new(cls, pixel_width, pixel_height, min_real, real_range, min_imag, imag_range,
            max_iterations, divergence_bound) -> "Plot":
        return cls(pixel_width, pixel_height, min_real, real_range, min_imag, imag_range,
                   max_iterations, divergence_bound)

    @property
    def max_real(self) -> float:
        return self.min_real + self.real_range

    @property
    def max_imag(self) -> float:
        return self.min_imag + self.imag_range

    @property
    def byte_length(self) -> int:
        return self._pixels.nbytes

    def calc_pixels(self) -> None:
        fill = fill_pixels_parallel if self.parallel else fill_pixels
        with timer(f"calc_pixels {self.pixel_width}x{self.pixel_height}"):
            fill(
                self._pixels,
                self.min_real,
                self.real_range,
                self.min_imag,
                self.imag_range,
                self.max_iterations,
                self.divergence_bound,
            )

    def pixels(self) -> memoryview:
        """Borrow the raw [R, G, B, A] bytes, row-major from the top-left pixel."""
        return memoryview(self.as_array().reshape(-1))

    def as_array(self) -> np.ndarray:
        view = self._pixels.view()
        view.flags.writeable = False
        return view

    def coordinate(self, row: int, col: int) -> Tuple[float, float]:
        """Point of the complex plane sampled by pixel (row, col)."""
        if not (0 <= row < self.pixel_height and 0 <= col < self.pixel_width):
            raise IndexError(f"pixel ({row}, {col}) outside {self.pixel_width}x{self.pixel_height}")
        real_step = self.real_range / self.pixel_width
        imag_step = self.imag_range / self.pixel_height
        return self.min_real + real_step * col, self.max_imag - imag_step * row

    def __repr__(self) -> str:
        return (
            f"Plot({self.pixel_width}x{self.pixel_height}, re=[{self.min_real}, {self.max_real}], "
            f"im=[{self.min_imag}, {self.max_imag}], max_iterations={self.max_iterations}, "
            f"divergence_bound={self.divergence_bound})"
        )
