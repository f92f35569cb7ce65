from __future__ import annotations

from .playback import (
    bounds_to_item,
    entity_to_item,
    live_to_item,
    playback_state_to_item,
    sample_to_item,
    stats_to_item,
    track_to_meta_item,
    track_to_path_item,
)

__all__ = [
    "sample_to_item",
    "bounds_to_item",
    "playback_state_to_item",
    "entity_to_item",
    "stats_to_item",
    "track_to_meta_item",
    "track_to_path_item",
    "live_to_item",
]
