from __future__ import annotations

import math
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import numpy as np

from .errors import InvalidArgumentError


RawInstant = float | int | str | datetime | None


@dataclass(frozen=True)
class PositionSample:
    """One timestamped position of an entity.

    Notes:
    - `timestamp` is kept exactly as received from the fleet API. It is only
      parsed (and possibly rejected) when a temporal index is built.
    - Coordinates are passed through untouched.
    """

    timestamp: RawInstant
    x: float
    y: float
    z: float

    @property
    def position(self) -> tuple[float, float, float]:
        return (float(self.x), float(self.y), float(self.z))


def parse_instant(value: Any) -> float | None:
    """Return `value` as unix epoch seconds, or None when it cannot be parsed."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        try:
            return float(value.timestamp())
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, (int, float, np.integer, np.floating)):
        try:
            v = float(value)
        except OverflowError:
            return None
        return v if np.isfinite(v) else None
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        try:
            v = float(s)
        except ValueError:
            pass
        else:
            return v if np.isfinite(v) else None
        if s.endswith(("Z", "z")):
            s = s[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(s)
        except ValueError:
            return None
        return parse_instant(dt)
    return None


@dataclass(frozen=True)
class TimeRange:
    start: float
    end: float

    def __post_init__(self) -> None:
        if not (math.isfinite(self.start) and math.isfinite(self.end)):
            raise InvalidArgumentError("time range bounds must be finite")
        if self.end < self.start:
            raise InvalidArgumentError("time range end must be >= start")


@dataclass(frozen=True)
class Bounds:
    """Time interval spanned by the selected tracks."""

    start: float
    end: float

    @property
    def duration(self) -> float:
        return self.end - self.start

    def clamp(self, t: float) -> float:
        return min(max(float(t), self.start), self.end)


@dataclass(frozen=True)
class TrackedEntity:
    entity_id: str
    last_seen_at: float | None
    name: str | None = None
    first_seen_at: float | None = None
    sample_count: int = 0

    @property
    def label(self) -> str:
        return self.name or self.entity_id[:8]


@dataclass(frozen=True)
class LivePosition:
    entity_id: str
    sample: PositionSample
    name: str | None = None
    is_alive: bool = True


# (value, label, seconds)
TIME_RANGE_PRESETS: tuple[tuple[str, str, int], ...] = (
    ("1h", "Last 1 Hour", 3600),
    ("3h", "Last 3 Hours", 10800),
    ("6h", "Last 6 Hours", 21600),
    ("12h", "Last 12 Hours", 43200),
    ("24h", "Last 24 Hours", 86400),
    ("3d", "Last 3 Days", 259200),
    ("7d", "Last 7 Days", 604800),
)


def preset_seconds(preset: str) -> int:
    key = str(preset).strip().lower()
    for value, _, seconds in TIME_RANGE_PRESETS:
        if value == key:
            return seconds
    raise InvalidArgumentError(
        f"Unknown time range {preset!r}; expected one of {', '.join(v for v, _, _ in TIME_RANGE_PRESETS)}"
    )


def time_range_for_preset(preset: str, *, now: float | None = None) -> TimeRange:
    seconds = preset_seconds(preset)
    end = float(math.floor(time.time() if now is None else now))
    return TimeRange(start=end - seconds, end=end)
