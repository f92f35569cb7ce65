from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

import numpy as np

from .samples import Bounds, PositionSample
from .timeline import EntityTrack
from .tracks import TrackRegistry


def compute_bounds(tracks: Iterable[EntityTrack | None]) -> Bounds | None:
    """Union of the time spans of `tracks`; empty or missing tracks are ignored."""
    start: float | None = None
    end: float | None = None
    for track in tracks:
        if track is None:
            continue
        span = track.span()
        if span is None:
            continue
        if start is None or span.start < start:
            start = span.start
        if end is None or span.end > end:
            end = span.end
    if start is None or end is None:
        return None
    return Bounds(start=start, end=end)


def resolve_in_track(track: EntityTrack | None, at_time: float | None) -> PositionSample | None:
    if track is None:
        return None
    if at_time is None:
        return track.last
    return track.index.sample_at_or_before(at_time)


@dataclass(frozen=True)
class TrackStats:
    sample_count: int
    start: float | None
    end: float | None
    duration_s: float
    distance: float


def track_stats(track: EntityTrack) -> TrackStats:
    n = len(track)
    if n == 0:
        return TrackStats(sample_count=0, start=None, end=None, duration_s=0.0, distance=0.0)

    pos = np.asarray([s.position for s in track.samples], dtype=np.float64).reshape(n, 3)
    if n > 1:
        seg = np.linalg.norm(np.diff(pos, axis=0), axis=1)
        distance = float(np.sum(seg[np.isfinite(seg)]))
    else:
        distance = 0.0

    start = track.index.instants[0]
    end = track.index.instants[-1]
    return TrackStats(
        sample_count=n,
        start=start,
        end=end,
        duration_s=float(end - start),
        distance=distance,
    )


class Coordinator:
    """Query surface over the selected tracks: bounds and per-entity positions."""

    def __init__(self, registry: TrackRegistry) -> None:
        self._registry = registry
        self._cached_revision: int | None = None
        self._cached_bounds: Bounds | None = None

    @property
    def registry(self) -> TrackRegistry:
        return self._registry

    def bounds(self) -> Bounds | None:
        revision = self._registry.revision()
        if revision != self._cached_revision:
            self._cached_bounds = compute_bounds(self._registry.selected_tracks())
            self._cached_revision = revision
        return self._cached_bounds

    def resolve(self, entity_id: str, at_time: float | None) -> PositionSample | None:
        return resolve_in_track(self._registry.get_track(entity_id), at_time)

    def resolve_positions(
        self,
        entity_ids: Iterable[str] | None,
        at_time: float | None,
    ) -> dict[str, PositionSample | None]:
        ids = self._registry.selection if entity_ids is None else entity_ids
        return {eid: self.resolve(eid, at_time) for eid in ids}

    def progress(self, cursor: float | None) -> float | None:
        bounds = self.bounds()
        if cursor is None or bounds is None:
            return None
        if bounds.duration <= 0:
            return 1.0
        return float(min(1.0, max(0.0, (cursor - bounds.start) / bounds.duration)))
