class PlotError(Exception):
    """Base class for errors raised while building a plot."""


class InvalidArgument(PlotError, ValueError):
    """A plot parameter is out of range (non-positive size, extent, etc.)."""


class CapacityExceeded(PlotError, OverflowError):
    """The pixel buffer would not fit the addressable byte range."""
