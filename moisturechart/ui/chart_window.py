"""Tk window hosting a live moisture chart.

Readings from producer threads go through :meth:`ChartWindow.submit`, which
only touches a thread-safe queue. The Tk thread drains that queue on every
refresh tick, so the chart and its series buffers have a single writer.
"""

from __future__ import annotations

import tkinter as tk
from tkinter import filedialog, messagebox, ttk
from typing import Callable, Optional

from matplotlib.backends.backend_tkagg import FigureCanvasTkAgg
from matplotlib.figure import Figure

from ..chart import MoistureChart
from ..config import DEFAULT_ORDERING, REFRESH_INTERVAL_MS, WINDOW_DURATION_MS
from ..inbox import ReadingInbox
from ..plotting import ChartOptions
from ..window import OrderingPolicy


class ChartWindow(tk.Tk):
    """Top-level window showing one :class:`MoistureChart`."""

    def __init__(
        self,
        options: Optional[ChartOptions] = None,
        *,
        window_ms: int = WINDOW_DURATION_MS,
        ordering: OrderingPolicy | str = DEFAULT_ORDERING,
        refresh_interval_ms: int = REFRESH_INTERVAL_MS,
        on_tick: Optional[Callable[[], None]] = None,
    ):
        """Initialize the window.

        Args:
            options: Chart title, labels, kind and time axis settings
            window_ms: Retention horizon in milliseconds
            ordering: Policy for readings older than a series' newest point
            refresh_interval_ms: Period of the drain-and-redraw loop
            on_tick: Optional callback run on the Tk thread before each drain
        """
        super().__init__()
        options = options or ChartOptions()
        self.title(options.title)
        self.refresh_interval_ms = refresh_interval_ms
        self.on_tick = on_tick
        self.inbox = ReadingInbox()
        self._after_id: Optional[str] = None
        self._closed = False

        self.update_idletasks()
        screen_width = self.winfo_screenwidth()
        screen_height = self.winfo_screenheight()
        window_width = min(int(screen_width * 0.6), 1280)
        window_height = min(int(screen_height * 0.6), 800)
        self.geometry(f"{window_width}x{window_height}")
        self.rowconfigure(1, weight=1)
        self.columnconfigure(0, weight=1)
        print(f"[Window Init] Window: {window_width}x{window_height}px")

        # === Top controls ===
        top = ttk.Frame(self)
        top.grid(row=0, column=0, sticky="ew", padx=6, pady=4)
        ttk.Button(top, text="Clear", command=self.clear_data).pack(side=tk.LEFT)
        ttk.Button(top, text="Export PNG", command=lambda: self.export_graph("png")).pack(side=tk.LEFT, padx=5)
        self.status = tk.StringVar(value="Waiting for readings")
        ttk.Label(top, textvariable=self.status).pack(side=tk.LEFT, padx=10)

        # === Figure area ===
        dpi = 120 if screen_width >= 1920 else 100
        fig = Figure(figsize=(max(window_width / dpi, 6), max(window_height / dpi, 3.5)), dpi=dpi)
        self.canvas = FigureCanvasTkAgg(fig, master=self)
        self.canvas.get_tk_widget().grid(row=1, column=0, sticky="nsew", padx=6, pady=6)
        self.chart = MoistureChart(options, fig=fig, window_ms=window_ms, ordering=ordering)

        self.protocol("WM_DELETE_WINDOW", self.close)

    def submit(self, series_name: str, timestamp_ms: int, value: float) -> None:
        """Queue a reading; safe to call from any thread."""
        self.inbox.submit(series_name, timestamp_ms, value)

    def start(self) -> None:
        """Start the periodic drain-and-redraw loop."""
        if self._after_id is None and not self._closed:
            self._after_id = self.after(self.refresh_interval_ms, self._tick)

    def drain(self) -> int:
        """Apply queued readings to the chart and return how many were applied."""
        return self.inbox.drain_into(self.chart)

    def _tick(self) -> None:
        self._after_id = None
        if self._closed:
            return
        if self.on_tick is not None:
            self.on_tick()
        applied = self.drain()
        if applied:
            self.chart.refresh()
            self.status.set(f"{len(self.chart.series_names())} series, {applied} new readings")
        self._after_id = self.after(self.refresh_interval_ms, self._tick)

    def clear_data(self) -> None:
        self.chart.clear_all()
        self.chart.refresh()
        self.status.set("Cleared")

    def export_graph(self, fmt: str) -> None:
        filetypes = [(f"{fmt.upper()} files", f"*.{fmt}"), ("All files", "*.*")]
        path = filedialog.asksaveasfilename(defaultextension=f".{fmt}", filetypes=filetypes)
        if not path:
            return
        try:
            target = self.chart.export(path, fmt)
            messagebox.showinfo("Export successful", f"Graph exported as {target.name}")
        except Exception as e:
            messagebox.showerror("Export error", str(e))

    def close(self) -> None:
        """Stop the refresh loop, release the chart and destroy the window."""
        if self._closed:
            return
        self._closed = True
        if self._after_id is not None:
            self.after_cancel(self._after_id)
            self._after_id = None
        self.chart.close()
        self.destroy()
