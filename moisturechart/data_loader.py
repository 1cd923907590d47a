"""Sensor log loading: turns a CSV/TXT log into a stream of readings."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Iterator, List

import numpy as np
import pandas as pd
from dateutil import tz

from .config import (
    COMPACT_TIME_FORMAT,
    DISPLAY_TZ_NAME,
    SENSOR_DESCRIPTIONS,
    TIME_COLUMN_NAMES,
)

# An ISO time followed by "Z" or a +HH:MM offset
UTC_OFFSET_PATTERN = r"\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?\s*(?:Z|[+-]\d{2}:?\d{2})$"


class DataLoadError(Exception):
    """Raised when the input log file cannot be parsed."""


@dataclass(frozen=True)
class Reading:
    series: str
    timestamp_ms: int
    value: float


@dataclass
class SensorLog:
    """Represents the result of loading a sensor log file."""

    dataframe: pd.DataFrame
    time_column: str
    numeric_columns: List[str]
    column_to_display: Dict[str, str]
    source_path: Path

    def readings(self) -> Iterator[Reading]:
        """Yield one reading per non-empty cell, ordered by time then column."""
        timestamps = self.dataframe["_timestamp_ms"].to_numpy(dtype=np.int64)
        frames = []
        for order, column in enumerate(self.numeric_columns):
            values = pd.to_numeric(self.dataframe[column], errors="coerce").to_numpy(dtype=float)
            mask = ~np.isnan(values)
            frames.append(
                pd.DataFrame(
                    {
                        "timestamp_ms": timestamps[mask],
                        "order": order,
                        "series": self.column_to_display[column],
                        "value": values[mask],
                    }
                )
            )
        if not frames:
            return
        stream = pd.concat(frames, ignore_index=True).sort_values(["timestamp_ms", "order"], kind="stable")
        for row in stream.itertuples(index=False):
            yield Reading(series=row.series, timestamp_ms=int(row.timestamp_ms), value=float(row.value))

    @property
    def start_ms(self) -> int:
        return int(self.dataframe["_timestamp_ms"].iloc[0])

    @property
    def end_ms(self) -> int:
        return int(self.dataframe["_timestamp_ms"].iloc[-1])


class SensorLogLoader:
    """Load CSV/TXT sensor logs."""

    def __init__(self, *, sensor_descriptions: Dict[str, str] | None = None, log_timezone: str | tz.tzfile | None = None) -> None:
        self.sensor_descriptions = SENSOR_DESCRIPTIONS if sensor_descriptions is None else sensor_descriptions
        # Naive log timestamps are interpreted in this timezone
        if log_timezone is None:
            self.log_timezone = tz.gettz(DISPLAY_TZ_NAME)
        elif isinstance(log_timezone, str):
            self.log_timezone = tz.gettz(log_timezone)
        else:
            self.log_timezone = log_timezone

    def load(self, path: str | Path) -> SensorLog:
        """Load the given log file and return a structured result."""
        file_path = Path(path)
        if not file_path.exists():
            raise DataLoadError(f"File not found: {file_path}")

        delimiter = "\t" if file_path.suffix.lower() == ".txt" else ","

        try:
            df = pd.read_csv(file_path, delimiter=delimiter)
        except pd.errors.EmptyDataError:
            raise DataLoadError("The selected file is empty.") from None
        if df.empty:
            raise DataLoadError("The selected file is empty.")

        time_column = self._infer_time_column(df)
        if time_column is None:
            raise DataLoadError(
                f"Could not locate a time column (one of {', '.join(TIME_COLUMN_NAMES)}, or a name containing 'time')."
            )

        try:
            times = self._parse_times(df[time_column])
        except (ValueError, TypeError, OverflowError) as exc:
            raise DataLoadError(f"Could not parse timestamps in column '{time_column}': {exc}") from exc
        if times.notna().sum() == 0:
            raise DataLoadError(f"Could not parse timestamps in column '{time_column}'.")

        df[time_column] = times
        df = df.dropna(subset=[time_column]).sort_values(time_column, kind="stable").reset_index(drop=True)
        if df.empty:
            raise DataLoadError(f"No usable timestamps in column '{time_column}'.")
        df["_timestamp_ms"] = self._to_epoch_ms(df[time_column])

        numeric_columns = self._numeric_columns(df, exclude={time_column, "_timestamp_ms"})
        if not numeric_columns:
            raise DataLoadError("No numeric columns were detected to plot.")

        column_to_display = self._build_display_map(numeric_columns)

        print(f"[Log Loader] Found {len(numeric_columns)} numeric columns in {file_path.name}")
        print(f"[Log Loader] {len(df)} rows, time column '{time_column}'")

        return SensorLog(
            dataframe=df,
            time_column=time_column,
            numeric_columns=numeric_columns,
            column_to_display=column_to_display,
            source_path=file_path,
        )

    def _infer_time_column(self, df: pd.DataFrame) -> str | None:
        by_name = {str(column).strip().lower(): column for column in df.columns}
        for name in TIME_COLUMN_NAMES:
            if name.lower() in by_name:
                return by_name[name.lower()]

        for column in df.columns:
            if "time" in str(column).lower():
                return column
        return None

    def _parse_times(self, series: pd.Series) -> pd.Series:
        """Parse a time column into UTC timestamps (NaT where unparseable)."""
        if pd.api.types.is_numeric_dtype(series):
            # Numeric time columns are epoch milliseconds
            return pd.to_datetime(series, unit="ms", utc=True, errors="coerce")

        text = series.astype(str).str.strip()
        compact = pd.to_datetime(text, format=COMPACT_TIME_FORMAT, errors="coerce")
        if compact.notna().any():
            return self._localize(compact)

        # Offsets differ across a DST change, so those rows are parsed straight to UTC
        has_offset = text.str.contains(UTC_OFFSET_PATTERN, regex=True)
        aware = pd.to_datetime(text[has_offset], errors="coerce", utc=True)
        naive = self._localize(pd.to_datetime(text[~has_offset], errors="coerce"))
        return pd.concat([aware, naive]).reindex(series.index)

    def _localize(self, series: pd.Series) -> pd.Series:
        series = series.dt.tz_localize(self.log_timezone, ambiguous="NaT", nonexistent="shift_forward")
        return series.dt.tz_convert("UTC")

    def _to_epoch_ms(self, series: pd.Series) -> pd.Series:
        epoch = pd.Timestamp(0, tz="UTC")
        return ((series - epoch) // pd.Timedelta(milliseconds=1)).astype("int64")

    def _numeric_columns(self, df: pd.DataFrame, *, exclude: Iterable[str] | None = None) -> List[str]:
        candidates = df.drop(columns=list(exclude or ()), errors="ignore")
        numeric = candidates.apply(pd.to_numeric, errors="coerce")
        return [column for column in numeric.columns if numeric[column].notna().any()]

    def _build_display_map(self, columns: Iterable[str]) -> Dict[str, str]:
        return {column: self._display_name_for(column) for column in columns}

    def _display_name_for(self, column: str) -> str:
        # Sensor IDs match whole tokens only: "MS1_pct" is MS1, "MS10" is not
        tokens = set(re.split(r"[^0-9A-Z]+", str(column).upper()))
        for sensor_id, description in self.sensor_descriptions.items():
            if sensor_id.upper() in tokens:
                return f"{description} ({column})"
        return str(column)
