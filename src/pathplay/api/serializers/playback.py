from __future__ import annotations

from typing import Any

from ...core.coordinator import TrackStats
from ...core.playback import PlaybackState
from ...core.samples import Bounds, LivePosition, PositionSample, TrackedEntity, parse_instant
from ...core.timeline import EntityTrack
from ...core.tracks import TrackRegistry


def sample_to_item(s: PositionSample | None) -> dict[str, Any] | None:
    if s is None:
        return None
    return {
        "timestamp": parse_instant(s.timestamp),
        "position": {"x": float(s.x), "y": float(s.y), "z": float(s.z)},
    }


def bounds_to_item(b: Bounds | None) -> dict[str, float] | None:
    if b is None:
        return None
    return {"start": float(b.start), "end": float(b.end), "duration": float(b.duration)}


def playback_state_to_item(state: PlaybackState, *, progress: float | None = None) -> dict[str, Any]:
    return {
        "status": state.status.value,
        "cursor": state.cursor,
        "isPlaying": bool(state.is_playing),
        "speedFactor": float(state.speed_factor),
        "progress": progress,
    }


def entity_to_item(e: TrackedEntity, registry: TrackRegistry) -> dict[str, Any]:
    return {
        "id": e.entity_id,
        "label": e.label,
        "name": e.name,
        "firstSeenAt": e.first_seen_at,
        "lastSeenAt": e.last_seen_at,
        "sampleCount": int(e.sample_count),
        "selected": e.entity_id in registry.selection,
        "color": registry.path_color(e.entity_id),
    }


def stats_to_item(st: TrackStats) -> dict[str, Any]:
    return {
        "sampleCount": int(st.sample_count),
        "start": st.start,
        "end": st.end,
        "durationS": float(st.duration_s),
        "distance": float(st.distance),
    }


def track_to_meta_item(track: EntityTrack, registry: TrackRegistry, stats: TrackStats) -> dict[str, Any]:
    tr = track.time_range
    return {
        "id": track.entity_id,
        "loadState": registry.load_state(track.entity_id),
        "color": registry.path_color(track.entity_id),
        "loadedAt": float(track.loaded_at),
        "range": None if tr is None else {"start": float(tr.start), "end": float(tr.end)},
        "span": bounds_to_item(track.span()),
        "stats": stats_to_item(stats),
        "first": sample_to_item(track.first),
        "last": sample_to_item(track.last),
    }


def track_to_path_item(track: EntityTrack) -> dict[str, Any]:
    return {
        "id": track.entity_id,
        "timestamps": list(track.index.instants),
        "points": [[float(s.x), float(s.y), float(s.z)] for s in track.samples],
    }


def live_to_item(p: LivePosition) -> dict[str, Any]:
    return {
        "id": p.entity_id,
        "name": p.name,
        "isAlive": bool(p.is_alive),
        "sample": sample_to_item(p.sample),
    }
