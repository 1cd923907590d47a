"""Tk host window for the moisture chart."""

from .chart_window import ChartWindow

__all__ = ["ChartWindow"]
