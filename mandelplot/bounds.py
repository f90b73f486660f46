"""Value types describing what region to plot, at what size, and how."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_MAX_ITERATIONS = 200
# Squared escape radius: |z| > 2.
DEFAULT_DIVERGENCE_BOUND = 4.0
DEFAULT_CHUNK_SIZE = 320


@dataclass(frozen=True)
class PlotBounds:
    """Rectangle of the complex plane, stored as lower corner plus extents."""

    min_real: float = -2.0
    real_range: float = 3.0
    min_imag: float = -1.5
    imag_range: float = 3.0

    @classmethod
    def from_corners(cls, min_real: float, max_real: float, min_imag: float, max_imag: float) -> "PlotBounds":
        return cls(
            min_real=float(min_real),
            real_range=float(max_real) - float(min_real),
            min_imag=float(min_imag),
            imag_range=float(max_imag) - float(min_imag),
        )

    @property
    def max_real(self) -> float:
        return self.min_real + self.real_range

    @property
    def max_imag(self) -> float:
        return self.min_imag + self.imag_range


@dataclass(frozen=True)
class Viewport:
    width: int = 800
    height: int = 800
    chunk_size: int = DEFAULT_CHUNK_SIZE


@dataclass(frozen=True)
class PlotOptions:
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    divergence_bound: float = DEFAULT_DIVERGENCE_BOUND
    parallel: bool = False
