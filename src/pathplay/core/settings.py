from __future__ import annotations

import math
import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from .errors import InvalidArgumentError
from .playback import DEFAULT_SPEED_FACTOR, DEFAULT_TICK_INTERVAL_MS, validate_speed
from .samples import preset_seconds
from .tracks import DEFAULT_MAX_POINTS

SPEED_PRESET_LABELS: dict[float, str] = {
    2.0: "Slow",
    10.0: "Normal",
    30.0: "Fast",
    60.0: "Very Fast",
}


@dataclass(frozen=True)
class PlaybackSettings:
    """Tunables of one playback view.

    Notes:
    - Speed presets are virtual seconds advanced per tick. They are offered to
      the UI as choices; `set_speed` still accepts any positive value.
    - Only `tick_interval_ms` controls wall-clock cadence.
    """

    api_base_url: str = "http://127.0.0.1:3001"
    request_timeout_s: float = 10.0
    max_points_per_track: int = DEFAULT_MAX_POINTS
    tick_interval_ms: int = DEFAULT_TICK_INTERVAL_MS
    speed_presets: tuple[float, ...] = field(default=(2.0, 10.0, 30.0, 60.0))
    default_speed: float = DEFAULT_SPEED_FACTOR
    live_refresh_interval_s: float = 5.0
    default_time_range: str = "3h"

    def __post_init__(self) -> None:
        if not str(self.api_base_url).strip():
            raise InvalidArgumentError("api_base_url cannot be empty")
        _require_positive(self.request_timeout_s, name="request_timeout_s")
        _require_positive(self.live_refresh_interval_s, name="live_refresh_interval_s")
        if int(self.max_points_per_track) != self.max_points_per_track or self.max_points_per_track <= 0:
            raise InvalidArgumentError("max_points_per_track must be a positive integer")
        if int(self.tick_interval_ms) != self.tick_interval_ms or self.tick_interval_ms <= 0:
            raise InvalidArgumentError("tick_interval_ms must be a positive integer")
        if not self.speed_presets:
            raise InvalidArgumentError("speed_presets cannot be empty")
        for p in self.speed_presets:
            validate_speed(p)
        validate_speed(self.default_speed)
        preset_seconds(self.default_time_range)

    def speed_options(self) -> list[dict[str, Any]]:
        return [
            {"value": float(p), "label": SPEED_PRESET_LABELS.get(float(p), f"{p:g}s/tick")}
            for p in self.speed_presets
        ]

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> PlaybackSettings:
        env = os.environ if environ is None else environ
        overrides: dict[str, Any] = {}

        if env.get("PATHPLAY_API_URL"):
            overrides["api_base_url"] = env["PATHPLAY_API_URL"].strip().rstrip("/")
        if env.get("PATHPLAY_TIMEOUT_S"):
            overrides["request_timeout_s"] = _parse_float(env["PATHPLAY_TIMEOUT_S"], name="PATHPLAY_TIMEOUT_S")
        if env.get("PATHPLAY_MAX_POINTS"):
            overrides["max_points_per_track"] = _parse_int(env["PATHPLAY_MAX_POINTS"], name="PATHPLAY_MAX_POINTS")
        if env.get("PATHPLAY_TICK_MS"):
            overrides["tick_interval_ms"] = _parse_int(env["PATHPLAY_TICK_MS"], name="PATHPLAY_TICK_MS")
        if env.get("PATHPLAY_SPEED_PRESETS"):
            overrides["speed_presets"] = tuple(
                _parse_float(part, name="PATHPLAY_SPEED_PRESETS")
                for part in env["PATHPLAY_SPEED_PRESETS"].split(",")
                if part.strip()
            )
        if env.get("PATHPLAY_DEFAULT_SPEED"):
            overrides["default_speed"] = _parse_float(env["PATHPLAY_DEFAULT_SPEED"], name="PATHPLAY_DEFAULT_SPEED")
        if env.get("PATHPLAY_LIVE_REFRESH_S"):
            overrides["live_refresh_interval_s"] = _parse_float(
                env["PATHPLAY_LIVE_REFRESH_S"], name="PATHPLAY_LIVE_REFRESH_S"
            )
        if env.get("PATHPLAY_TIME_RANGE"):
            overrides["default_time_range"] = env["PATHPLAY_TIME_RANGE"].strip().lower()

        return cls(**overrides)

    def with_overrides(self, **changes: Any) -> PlaybackSettings:
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def _require_positive(value: float, *, name: str) -> None:
    v = float(value)
    if not math.isfinite(v) or v <= 0:
        raise InvalidArgumentError(f"{name} must be a positive finite number")


def _parse_float(raw: str, *, name: str) -> float:
    try:
        return float(str(raw).strip())
    except ValueError as ex:
        raise InvalidArgumentError(f"Invalid {name}: {raw!r}") from ex


def _parse_int(raw: str, *, name: str) -> int:
    try:
        return int(str(raw).strip())
    except ValueError as ex:
        raise InvalidArgumentError(f"Invalid {name}: {raw!r}") from ex
