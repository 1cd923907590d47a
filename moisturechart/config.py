"""Default settings for the moisture chart."""

from __future__ import annotations

# Retention horizon relative to the newest reading of a series
WINDOW_DURATION_MS = 2 * 60 * 1000

# Axis tick format and the timezone ticks are rendered in
DISPLAY_TIME_FORMAT = "%H:%M:%S"
DISPLAY_TZ_NAME = "America/Los_Angeles"

# Tk refresh loop period (drains queued readings, then redraws)
REFRESH_INTERVAL_MS = 250

DEFAULT_TITLE = "Moisture Levels"
DEFAULT_X_LABEL = "Time"
DEFAULT_Y_LABEL = "Moisture (%)"

# One of "assume", "reject", "sorted" (see window.OrderingPolicy)
DEFAULT_ORDERING = "reject"

# Sensor IDs, matched against whole tokens of sensor log column names
SENSOR_DESCRIPTIONS = {
    "MS1": "Bed 1 soil sensor",
    "MS2": "Bed 2 soil sensor",
    "MS3": "Bed 3 soil sensor",
    "RH": "Air humidity",
}

# Sensor log time columns, most specific first (case-insensitive)
TIME_COLUMN_NAMES = ("timestamp_ms", "timestamp", "YYMMDD_HHMMSS", "datetime", "time", "date")
COMPACT_TIME_FORMAT = "%y%m%d_%H%M%S"
