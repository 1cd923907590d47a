"""Per-series sliding window of readings.

A :class:`WindowBuffer` keeps only the points that lie within ``window_ms`` of
the newest timestamp it has seen. Staleness is discovered on insert: a series
that stops receiving readings keeps its last window until new data or a clear
arrives.
"""

from __future__ import annotations

import bisect
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Deque, Iterator, List, Optional

import pandas as pd

from .config import WINDOW_DURATION_MS


class NonMonotonicTimestampError(ValueError):
    """Raised when a reading is older than the newest one already retained."""

    def __init__(self, timestamp: int, newest: int, series: Optional[str] = None) -> None:
        self.timestamp = timestamp
        self.newest = newest
        self.series = series
        where = f" for series '{series}'" if series is not None else ""
        super().__init__(
            f"Timestamp {timestamp} is older than the newest retained timestamp {newest}{where}."
        )


class OrderingPolicy(Enum):
    """How a buffer treats a timestamp older than its newest point.

    ``ASSUME`` trusts the caller to deliver non-decreasing timestamps and does
    no checking; a late point is appended at the tail and eviction is measured
    from it. ``REJECT`` raises :class:`NonMonotonicTimestampError`. ``SORTED``
    places the point at its ordered position and keeps the horizon anchored
    at the newest timestamp.
    """

    ASSUME = "assume"
    REJECT = "reject"
    SORTED = "sorted"

    @classmethod
    def parse(cls, value: "OrderingPolicy | str") -> "OrderingPolicy":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            choices = ", ".join(policy.value for policy in cls)
            raise ValueError(f"Unknown ordering policy '{value}' (expected one of: {choices}).") from None


def _as_millis(timestamp) -> int:
    millis = int(timestamp)
    if millis != timestamp:
        raise ValueError(f"Timestamp {timestamp!r} is not a whole number of milliseconds.")
    return millis


@dataclass(frozen=True)
class DataPoint:
    timestamp: int
    value: float


@dataclass
class InsertResult:
    """Outcome of one :meth:`WindowBuffer.insert` call."""

    point: DataPoint
    evicted: List[DataPoint] = field(default_factory=list)
    appended: bool = True
    reordered: bool = False

    @property
    def tail_append(self) -> bool:
        """True when the buffer only grew at its tail."""
        return self.appended and not self.evicted and not self.reordered


class WindowBuffer:
    """Time-ordered points of one series, trimmed to a retention horizon."""

    def __init__(
        self,
        window_ms: int = WINDOW_DURATION_MS,
        *,
        ordering: OrderingPolicy | str = OrderingPolicy.REJECT,
        name: Optional[str] = None,
    ) -> None:
        if window_ms <= 0:
            raise ValueError(f"Window duration must be positive, got {window_ms}.")
        self.window_ms = int(window_ms)
        self.ordering = OrderingPolicy.parse(ordering)
        self.name = name
        self._points: Deque[DataPoint] = deque()

    def insert(self, timestamp: int, value: float) -> InsertResult:
        """Evict points older than the horizon, then add the new point.

        ``timestamp`` is epoch milliseconds; integral floats are accepted,
        fractional ones raise ``ValueError``.
        """
        point = DataPoint(_as_millis(timestamp), float(value))
        newest = self._points[-1].timestamp if self._points else None

        if newest is not None and point.timestamp < newest:
            if self.ordering is OrderingPolicy.REJECT:
                raise NonMonotonicTimestampError(point.timestamp, newest, self.name)
            if self.ordering is OrderingPolicy.SORTED:
                return self._insert_sorted(point, newest)

        evicted = self._evict(point.timestamp)
        self._points.append(point)
        return InsertResult(point=point, evicted=evicted)

    def _insert_sorted(self, point: DataPoint, newest: int) -> InsertResult:
        # Horizon stays anchored at the newest point, so nothing else can expire.
        if newest - point.timestamp > self.window_ms:
            return InsertResult(point=point, appended=False)

        timestamps = [p.timestamp for p in self._points]
        index = bisect.bisect_right(timestamps, point.timestamp)
        self._points.insert(index, point)
        return InsertResult(point=point, reordered=True)

    def _evict(self, timestamp: int) -> List[DataPoint]:
        evicted: List[DataPoint] = []
        while self._points and timestamp - self._points[0].timestamp > self.window_ms:
            evicted.append(self._points.popleft())
        return evicted

    def clear(self) -> None:
        self._points.clear()

    def points(self) -> List[DataPoint]:
        """Return a copy of the retained points, oldest first."""
        return list(self._points)

    @property
    def oldest(self) -> Optional[DataPoint]:
        return self._points[0] if self._points else None

    @property
    def newest(self) -> Optional[DataPoint]:
        return self._points[-1] if self._points else None

    def span_ms(self) -> int:
        if len(self._points) < 2:
            return 0
        return self._points[-1].timestamp - self._points[0].timestamp

    def to_dataframe(self) -> pd.DataFrame:
        """Retained points as a DataFrame with UTC datetimes."""
        df = pd.DataFrame(
            {
                "timestamp": [p.timestamp for p in self._points],
                "value": [p.value for p in self._points],
            }
        )
        df["timestamp"] = pd.to_datetime(df["timestamp"].astype("int64"), unit="ms", utc=True)
        return df

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[DataPoint]:
        return iter(list(self._points))

    def __repr__(self) -> str:
        return f"WindowBuffer(name={self.name!r}, window_ms={self.window_ms}, points={len(self._points)})"
