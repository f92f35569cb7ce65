from __future__ import annotations

from .core import (
    Bounds,
    EntityTrack,
    PlaybackClock,
    PlaybackSettings,
    PlaybackState,
    PlaybackStatus,
    PlaybackView,
    PositionSample,
    TemporalIndex,
    TrackRegistry,
    build_index,
    downsample,
)
from .runtime.server import run
from .sdk.client import FleetApiClient

__all__ = [
    "run",
    "FleetApiClient",
    "PositionSample",
    "Bounds",
    "EntityTrack",
    "TemporalIndex",
    "TrackRegistry",
    "PlaybackClock",
    "PlaybackState",
    "PlaybackStatus",
    "PlaybackSettings",
    "PlaybackView",
    "build_index",
    "downsample",
]
