"""Sliding-window moisture chart.

- window: per-series buffer with the retention horizon
- registry: series name to buffer and render handle
- chart: in-process chart API
- plotting: matplotlib rendering
- data_loader: sensor log files as reading streams
"""

from .chart import ChartClosedError, MoistureChart
from .plotting import ChartKind, ChartOptions
from .registry import SeriesRegistry
from .window import DataPoint, NonMonotonicTimestampError, OrderingPolicy, WindowBuffer

__all__ = [
    "MoistureChart",
    "ChartClosedError",
    "ChartKind",
    "ChartOptions",
    "SeriesRegistry",
    "WindowBuffer",
    "DataPoint",
    "OrderingPolicy",
    "NonMonotonicTimestampError",
]

__version__ = "0.1.0"
