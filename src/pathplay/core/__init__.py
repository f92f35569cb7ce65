from __future__ import annotations

from .coordinator import Coordinator, TrackStats, compute_bounds, resolve_in_track, track_stats
from .downsample import downsample
from .errors import FetchError, InvalidArgumentError, PathplayError
from .live import LivePositionFeed
from .playback import PlaybackClock, PlaybackState, PlaybackStatus
from .samples import (
    TIME_RANGE_PRESETS,
    Bounds,
    LivePosition,
    PositionSample,
    TimeRange,
    TrackedEntity,
    parse_instant,
    time_range_for_preset,
)
from .settings import PlaybackSettings
from .timeline import EntityTrack, TemporalIndex, build_index, query_at_or_before
from .tracks import PATH_PALETTE, SampleFetcher, TrackRegistry
from .view import FleetSource, PlaybackView

__all__ = [
    "PositionSample",
    "TimeRange",
    "Bounds",
    "TrackedEntity",
    "LivePosition",
    "TIME_RANGE_PRESETS",
    "parse_instant",
    "time_range_for_preset",
    "downsample",
    "TemporalIndex",
    "EntityTrack",
    "build_index",
    "query_at_or_before",
    "SampleFetcher",
    "TrackRegistry",
    "PATH_PALETTE",
    "Coordinator",
    "TrackStats",
    "compute_bounds",
    "resolve_in_track",
    "track_stats",
    "PlaybackClock",
    "PlaybackState",
    "PlaybackStatus",
    "LivePositionFeed",
    "PlaybackSettings",
    "FleetSource",
    "PlaybackView",
    "PathplayError",
    "InvalidArgumentError",
    "FetchError",
]
