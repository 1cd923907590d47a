"""Windowed moisture chart: series registry wired to a matplotlib plotter."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, List, Optional

import pandas as pd
from matplotlib.figure import Figure

from .config import DEFAULT_ORDERING, WINDOW_DURATION_MS
from .plotting import ChartOptions, ChartPlotter
from .registry import SeriesRegistry
from .window import DataPoint, OrderingPolicy

if TYPE_CHECKING:
    import matplotlib.figure


class ChartClosedError(RuntimeError):
    """Raised when a closed chart is used."""


class MoistureChart:
    """Chart of moisture readings that keeps a sliding time window per series.

    Readings are submitted with :meth:`add_data_point`; each series keeps only
    the points within ``window_ms`` of its newest reading. The chart is
    redrawn on :meth:`refresh` and released by :meth:`close`.

    Example::

        with MoistureChart(ChartOptions(kind="step")) as chart:
            chart.add_data_point("Bed 1", 1_700_000_000_000, 41.5)
            chart.refresh()
    """

    def __init__(
        self,
        options: Optional[ChartOptions] = None,
        *,
        fig: Optional[matplotlib.figure.Figure] = None,
        window_ms: int = WINDOW_DURATION_MS,
        ordering: OrderingPolicy | str = DEFAULT_ORDERING,
    ):
        """Initialize the chart.

        Args:
            options: Chart title, labels, kind and time axis settings
            fig: Figure to draw on; a new one is created when omitted
            window_ms: Retention horizon in milliseconds
            ordering: Policy for readings older than a series' newest point
        """
        self.options = options or ChartOptions()
        self.fig = fig if fig is not None else Figure(figsize=(8, 4.5), dpi=100)
        self.plotter = ChartPlotter(self.fig, self.options)
        self.registry = SeriesRegistry(
            self.plotter.create_handle,
            window_ms=window_ms,
            ordering=ordering,
        )
        self.closed = False

    @property
    def window_ms(self) -> int:
        return self.registry.window_ms

    def add_data_point(self, series_name: str, timestamp_ms: int, value: float) -> None:
        """Record a reading for ``series_name``, evicting points outside the window."""
        self._check_open()
        self.registry.insert(series_name, timestamp_ms, value)

    def clear_all(self) -> None:
        """Empty every series; series stay registered."""
        self._check_open()
        self.registry.clear_all()
        print(f"[Chart] Cleared {len(self.registry)} series")

    clear_data = clear_all

    def get_window(self, series_name: str) -> Optional[List[DataPoint]]:
        """Return the retained points of ``series_name``, or None if never seen."""
        buffer = self.registry.get(series_name)
        if buffer is None:
            return None
        return buffer.points()

    def series_names(self) -> List[str]:
        return self.registry.names()

    def snapshot(self) -> pd.DataFrame:
        """All retained points in long format (series, timestamp, value)."""
        frames = []
        for name in self.registry.names():
            df = self.registry.get(name).to_dataframe()
            df.insert(0, "series", name)
            frames.append(df)
        if not frames:
            return pd.DataFrame(
                {
                    "series": pd.Series(dtype=object),
                    "timestamp": pd.Series(dtype="datetime64[ns, UTC]"),
                    "value": pd.Series(dtype=float),
                }
            )
        return pd.concat(frames, ignore_index=True)

    def refresh(self) -> None:
        """Redraw the chart with the current windows."""
        self._check_open()
        self.plotter.request_redraw()

    def export(self, path: str | Path, fmt: Optional[str] = None) -> Path:
        self._check_open()
        self.plotter.request_redraw()
        return self.plotter.export(path, fmt)

    def close(self) -> None:
        """Release rendering resources. Further use raises ChartClosedError."""
        if self.closed:
            return
        self.plotter.dispose()
        self.closed = True
        print(f"[Chart] Closed '{self.options.title}'")

    def _check_open(self) -> None:
        if self.closed:
            raise ChartClosedError(f"Chart '{self.options.title}' has been closed.")

    def __enter__(self) -> "MoistureChart":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
