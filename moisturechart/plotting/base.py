"""Render handle contract shared by the registry and the plotters."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, List

from ..window import DataPoint


class RenderHandle(ABC):
    """Visual trace of one series.

    The registry drives a handle so that it always shows exactly the points
    retained by the series' buffer. Handles are written to, never read from,
    by the core.
    """

    def __init__(self, name: str) -> None:
        self.name = name

    @abstractmethod
    def set_points(self, points: Iterable[DataPoint]) -> None:
        """Replace the whole trace with ``points`` (oldest first)."""
        raise NotImplementedError

    @abstractmethod
    def append(self, point: DataPoint) -> None:
        raise NotImplementedError

    @abstractmethod
    def clear(self) -> None:
        raise NotImplementedError


class PointListHandle(RenderHandle):
    """Handle that just records the trace; used when nothing is drawn."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self._points: List[DataPoint] = []

    def set_points(self, points: Iterable[DataPoint]) -> None:
        self._points = list(points)

    def append(self, point: DataPoint) -> None:
        self._points.append(point)

    def clear(self) -> None:
        self._points = []

    def points(self) -> List[DataPoint]:
        return list(self._points)
