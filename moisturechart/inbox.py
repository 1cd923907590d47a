"""Thread-safe hand-off of readings to the thread that owns a chart."""

from __future__ import annotations

import queue
from typing import TYPE_CHECKING, Any, Tuple

from .window import NonMonotonicTimestampError

if TYPE_CHECKING:
    from .chart import MoistureChart


class ReadingInbox:
    """Queue of ``(series, timestamp_ms, value)`` readings.

    Producers call :meth:`submit` from any thread. The owning thread calls
    :meth:`drain_into` so the chart only ever has one writer.
    """

    def __init__(self) -> None:
        self._queue: "queue.Queue[Tuple[str, Any, Any]]" = queue.Queue()

    def submit(self, series_name: str, timestamp_ms: int, value: float) -> None:
        self._queue.put((series_name, timestamp_ms, value))

    def pending(self) -> int:
        return self._queue.qsize()

    def drain_into(self, chart: MoistureChart) -> int:
        """Apply every queued reading to ``chart`` and return how many were applied.

        Readings the chart rejects (out of order, fractional timestamps) are
        reported and skipped.
        """
        applied = 0
        while True:
            try:
                series_name, timestamp_ms, value = self._queue.get_nowait()
            except queue.Empty:
                break
            try:
                chart.add_data_point(series_name, timestamp_ms, value)
            except NonMonotonicTimestampError as exc:
                print(f"[Chart Window] Dropped out-of-order reading: {exc}")
                continue
            except ValueError as exc:
                print(f"[Chart Window] Dropped invalid reading for '{series_name}': {exc}")
                continue
            applied += 1
        return applied
