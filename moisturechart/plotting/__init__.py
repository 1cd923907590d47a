"""Plotting components for the moisture chart.

- base: render handle contract used by the series registry
- plotter: matplotlib axes, per-series lines and redraw
"""

from .base import PointListHandle, RenderHandle
from .plotter import ChartKind, ChartOptions, ChartPlotter, SeriesLine

__all__ = [
    "RenderHandle",
    "PointListHandle",
    "ChartKind",
    "ChartOptions",
    "ChartPlotter",
    "SeriesLine",
]
