"""Command line entry point: open a live chart fed by a sensor log or a simulator."""

from __future__ import annotations

import argparse
import threading
import time
from typing import Iterator, List, Optional, Sequence

import numpy as np

from .config import (
    DEFAULT_ORDERING,
    DEFAULT_TITLE,
    DEFAULT_X_LABEL,
    DEFAULT_Y_LABEL,
    DISPLAY_TIME_FORMAT,
    REFRESH_INTERVAL_MS,
    WINDOW_DURATION_MS,
)
from .data_loader import DataLoadError, Reading, SensorLogLoader
from .plotting import ChartKind, ChartOptions


class LogReplay:
    """Releases log readings at a pace proportional to their timestamps.

    Readings keep their original timestamps; only the moment each one is
    handed to the chart is scaled by ``speed``.
    """

    def __init__(self, readings: Iterator[Reading], start_ms: int, speed: float = 1.0):
        if speed <= 0:
            raise ValueError(f"Replay speed must be positive, got {speed}.")
        self._readings = readings
        self._pending: Optional[Reading] = None
        self.start_ms = start_ms
        self.speed = speed
        self.started_at: Optional[float] = None
        self.finished = False

    def due(self, now: float) -> List[Reading]:
        """Return the readings whose replay time has passed at ``now`` (seconds)."""
        if self.started_at is None:
            self.started_at = now
        horizon_ms = self.start_ms + (now - self.started_at) * 1000.0 * self.speed
        out: List[Reading] = []
        while not self.finished:
            if self._pending is None:
                self._pending = next(self._readings, None)
                if self._pending is None:
                    self.finished = True
                    break
            if self._pending.timestamp_ms > horizon_ms:
                break
            out.append(self._pending)
            self._pending = None
        return out


def simulate_moisture(
    series_names: Sequence[str],
    stop: threading.Event,
    submit,
    *,
    period_s: float = 1.0,
    seed: Optional[int] = None,
) -> None:
    """Push a random-walk moisture reading per series every ``period_s`` seconds."""
    rng = np.random.default_rng(seed)
    levels = rng.uniform(30.0, 60.0, size=len(series_names))
    while not stop.is_set():
        now_ms = int(time.time() * 1000)
        levels = np.clip(levels + rng.normal(0.0, 0.8, size=len(series_names)), 0.0, 100.0)
        for name, level in zip(series_names, levels):
            submit(name, now_ms, float(level))
        stop.wait(period_s)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Live moisture chart with a sliding time window.")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--log", type=str, default=None, help="CSV/TXT sensor log to replay into the chart.")
    source.add_argument("--demo", action="store_true", help="Feed simulated moisture readings (default).")
    parser.add_argument("--series", nargs="+", default=["Bed 1", "Bed 2"], help="Series names for --demo.")
    parser.add_argument("--speed", type=float, default=1.0, help="Replay speed multiplier for --log.")
    parser.add_argument("--kind", choices=[kind.value for kind in ChartKind], default=ChartKind.CURVE.value,
                        help="Continuous curve or step function.")
    parser.add_argument("--window-seconds", type=float, default=WINDOW_DURATION_MS / 1000.0,
                        help="Retention horizon in seconds.")
    parser.add_argument("--ordering", choices=["assume", "reject", "sorted"], default=DEFAULT_ORDERING,
                        help="Handling of readings older than a series' newest point.")
    parser.add_argument("--title", default=DEFAULT_TITLE)
    parser.add_argument("--x-label", default=DEFAULT_X_LABEL)
    parser.add_argument("--y-label", default=DEFAULT_Y_LABEL)
    parser.add_argument("--time-format", default=DISPLAY_TIME_FORMAT)
    parser.add_argument("--refresh-ms", type=int, default=REFRESH_INTERVAL_MS, help="Redraw period in milliseconds.")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    window_ms = int(args.window_seconds * 1000)
    if window_ms <= 0:
        print("[CLI] --window-seconds must be positive")
        return 2

    replay: Optional[LogReplay] = None
    if args.log:
        try:
            log = SensorLogLoader().load(args.log)
            replay = LogReplay(log.readings(), log.start_ms, speed=args.speed)
        except (DataLoadError, ValueError) as exc:
            print(f"[CLI] Failed to load log: {exc}")
            return 1

    # Tk is only needed once a window is actually opened
    from .ui import ChartWindow

    options = ChartOptions(
        title=args.title,
        x_label=args.x_label,
        y_label=args.y_label,
        kind=args.kind,
        time_format=args.time_format,
    )
    window = ChartWindow(options, window_ms=window_ms, ordering=args.ordering, refresh_interval_ms=args.refresh_ms)

    stop = threading.Event()
    producer: Optional[threading.Thread] = None
    if replay is not None:
        def feed_log() -> None:
            for reading in replay.due(time.monotonic()):
                window.submit(reading.series, reading.timestamp_ms, reading.value)

        window.on_tick = feed_log
        print(f"[CLI] Replaying {args.log} at {args.speed}x")
    else:
        producer = threading.Thread(
            target=simulate_moisture,
            args=(args.series, stop, window.submit),
            daemon=True,
        )
        producer.start()
        print(f"[CLI] Simulating {len(args.series)} series: {', '.join(args.series)}")

    window.start()
    try:
        window.mainloop()
    finally:
        stop.set()
        if producer is not None:
            producer.join(timeout=2.0)
        window.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
