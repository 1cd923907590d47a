"""Matplotlib rendering for windowed sensor series.

Builds a single time axis on a figure, hands out one :class:`SeriesLine` per
series, and redraws on request.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

import matplotlib.dates as mdates
import numpy as np
from dateutil import tz

from ..config import (
    DEFAULT_TITLE,
    DEFAULT_X_LABEL,
    DEFAULT_Y_LABEL,
    DISPLAY_TIME_FORMAT,
    DISPLAY_TZ_NAME,
)
from ..window import DataPoint
from .base import RenderHandle

if TYPE_CHECKING:
    import matplotlib.axes
    import matplotlib.figure
    import matplotlib.lines


class ChartKind(Enum):
    CURVE = "curve"
    STEP = "step"

    @classmethod
    def parse(cls, value: "ChartKind | str") -> "ChartKind":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown chart kind '{value}' (expected 'curve' or 'step').") from None


class ChartOptions:
    """Configuration options for a chart."""

    def __init__(
        self,
        *,
        title: str = DEFAULT_TITLE,
        x_label: str = DEFAULT_X_LABEL,
        y_label: str = DEFAULT_Y_LABEL,
        kind: ChartKind | str = ChartKind.CURVE,

        # Time axis
        time_format: str = DISPLAY_TIME_FORMAT,
        display_tz: Any = None,

        # Grid and legend
        show_grid: bool = True,
        show_legend: bool = True,
        legend_position: str = "Upper Left",
        legend_fontsize: int = 8,
    ):
        """Initialize chart options.

        Args:
            title: Chart title text
            x_label: X-axis label
            y_label: Y-axis label
            kind: Continuous curve or step function
            time_format: strftime format for x-axis ticks
            display_tz: Timezone name or tzinfo for x-axis ticks
            show_grid: Whether to show grid lines
            show_legend: Whether to show legend
            legend_position: Legend position name
            legend_fontsize: Legend font size in points
        """
        self.title = title
        self.x_label = x_label
        self.y_label = y_label
        self.kind = ChartKind.parse(kind)
        self.time_format = time_format
        if display_tz is None:
            self.display_tz = tz.gettz(DISPLAY_TZ_NAME)
        elif isinstance(display_tz, str):
            self.display_tz = tz.gettz(display_tz)
        else:
            self.display_tz = display_tz
        self.show_grid = show_grid
        self.show_legend = show_legend
        self.legend_position = legend_position
        self.legend_fontsize = legend_fontsize


def to_plot_dates(timestamps_ms: Iterable[int]) -> np.ndarray:
    """Convert epoch milliseconds to matplotlib date numbers."""
    stamps = np.fromiter(timestamps_ms, dtype=np.int64)
    return mdates.date2num(stamps.astype("datetime64[ms]"))


def legend_label(name: str) -> str:
    """Label for a series line.

    Matplotlib hides labels that are empty or start with an underscore from
    the legend, so those names are shown quoted.
    """
    if not name or name.startswith("_"):
        return repr(name)
    return name


class SeriesLine(RenderHandle):
    """One series drawn as a matplotlib line."""

    def __init__(self, name: str, line: matplotlib.lines.Line2D):
        super().__init__(name)
        self.line = line
        self._timestamps: List[int] = []
        self._values: List[float] = []

    def set_points(self, points: Iterable[DataPoint]) -> None:
        points = list(points)
        self._timestamps = [p.timestamp for p in points]
        self._values = [p.value for p in points]
        self._push()

    def append(self, point: DataPoint) -> None:
        self._timestamps.append(point.timestamp)
        self._values.append(point.value)
        self._push()

    def clear(self) -> None:
        self._timestamps = []
        self._values = []
        self._push()

    def points(self) -> List[DataPoint]:
        return [DataPoint(t, v) for t, v in zip(self._timestamps, self._values)]

    def _push(self) -> None:
        self.line.set_data(to_plot_dates(self._timestamps), np.asarray(self._values, dtype=float))


class ChartPlotter:
    """Owns the chart axes and the lines drawn on it."""

    LEGEND_POSITIONS = {
        "Upper Left": "upper left",
        "Upper Right": "upper right",
        "Lower Left": "lower left",
        "Lower Right": "lower right",
        "Best": "best",
    }

    def __init__(self, fig: matplotlib.figure.Figure, options: Optional[ChartOptions] = None):
        """Initialize the plotter.

        Args:
            fig: Matplotlib figure to draw on (it is cleared)
            options: ChartOptions configuration object
        """
        self.fig = fig
        self.options = options or ChartOptions()
        self.lines: Dict[str, SeriesLine] = {}
        self.disposed = False

        self.fig.clear()
        self.ax: matplotlib.axes.Axes = self.fig.add_subplot(111)
        self._configure_axes()

    def _configure_axes(self) -> None:
        options = self.options
        self.ax.set_title(options.title)
        self.ax.set_xlabel(options.x_label)
        self.ax.set_ylabel(options.y_label)

        if options.show_grid:
            self.ax.grid(True, which="both", linestyle=":")

        # Time axis formatter in the display timezone
        locator = mdates.AutoDateLocator()
        self.ax.xaxis.set_major_locator(locator)
        self.ax.xaxis.set_major_formatter(mdates.DateFormatter(options.time_format, tz=options.display_tz))

        print(f"[Plot] Created {options.kind.value} chart '{options.title}' "
              f"(time format {options.time_format})")

    def create_handle(self, name: str) -> SeriesLine:
        """Add an empty line for ``name`` and return its handle."""
        if self.disposed:
            raise RuntimeError("Cannot add a series to a disposed chart.")

        drawstyle = "steps-post" if self.options.kind is ChartKind.STEP else "default"
        line, = self.ax.plot([], [], label=legend_label(name), drawstyle=drawstyle)
        handle = SeriesLine(name, line)
        self.lines[name] = handle
        return handle

    def request_redraw(self) -> None:
        """Rescale to the current data and schedule a repaint."""
        if self.disposed:
            return

        self.ax.relim()
        self.ax.autoscale_view()

        if self.options.show_legend and self.lines:
            loc = self.LEGEND_POSITIONS.get(self.options.legend_position, "upper left")
            self.ax.legend(loc=loc, fontsize=self.options.legend_fontsize)

        if self.fig.canvas is not None:
            self.fig.canvas.draw_idle()

    def export(self, path: str | Path, fmt: Optional[str] = None) -> Path:
        """Save the current figure to ``path``; format defaults to the file suffix."""
        if self.disposed:
            raise RuntimeError("Cannot export a disposed chart.")

        target = Path(path)
        fmt = (fmt or target.suffix.lstrip(".") or "png").lower()
        self.fig.savefig(target, format=fmt, bbox_inches="tight")
        print(f"[Export] Saved chart as {target.name} ({fmt.upper()})")
        return target

    def dispose(self) -> None:
        """Drop all lines and clear the figure."""
        if self.disposed:
            return
        self.lines.clear()
        self.fig.clear()
        self.disposed = True
        print("[Plot] Chart disposed")
