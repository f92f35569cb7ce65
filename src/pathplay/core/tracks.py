from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Sequence
from typing import Literal, Protocol

from .downsample import downsample
from .errors import InvalidArgumentError
from .samples import PositionSample, TimeRange
from .timeline import EntityTrack

logger = logging.getLogger(__name__)

LoadState = Literal["pending", "loaded", "failed"]

DEFAULT_MAX_POINTS = 8000

PATH_PALETTE: tuple[str, ...] = (
    "#0ea5e9",  # light blue
    "#22c55e",  # green
    "#f59e0b",  # amber
    "#ef4444",  # red
    "#8b5cf6",  # purple
    "#ec4899",  # pink
    "#06b6d4",  # cyan
    "#84cc16",  # lime
)


class SampleFetcher(Protocol):
    async def fetch_entity_positions(self, entity_id: str, start: float, end: float) -> Sequence[PositionSample]: ...


class TrackRegistry:
    """Selected entities and their indexed tracks.

    Notes:
    - All mutation happens on the event loop thread; the only suspension point
      is the fetch inside `load_track`.
    - A track is published by a single dict assignment, so readers see either
      the previous track or the complete new one.
    - Every load takes a per-entity generation number. Only the newest request
      for an entity may publish, regardless of completion order.
    """

    def __init__(self, fetcher: SampleFetcher, *, max_points: int = DEFAULT_MAX_POINTS) -> None:
        if isinstance(max_points, bool) or int(max_points) != max_points or max_points <= 0:
            raise InvalidArgumentError("max_points must be a positive integer")
        self._fetcher = fetcher
        self._max_points = int(max_points)
        self._selection: tuple[str, ...] = ()
        self._tracks: dict[str, EntityTrack] = {}
        self._load_state: dict[str, LoadState] = {}
        self._generations: dict[str, int] = {}
        self._in_flight: dict[str, int] = {}
        self._revision = 0

    @property
    def selection(self) -> tuple[str, ...]:
        return self._selection

    def revision(self) -> int:
        return self._revision

    def _bump(self) -> None:
        self._revision += 1

    def _next_generation(self, entity_id: str) -> int:
        gen = self._generations.get(entity_id, 0) + 1
        self._generations[entity_id] = gen
        return gen

    def set_selection(self, entity_ids: Iterable[str]) -> list[str]:
        """Replace the selection and return the ids that were not selected before."""
        ordered: list[str] = []
        for raw in entity_ids:
            eid = str(raw).strip()
            if eid and eid not in ordered:
                ordered.append(eid)

        previous = set(self._selection)
        added = [eid for eid in ordered if eid not in previous]
        for eid in previous.difference(ordered):
            self.evict(eid)

        if tuple(ordered) != self._selection:
            self._selection = tuple(ordered)
            self._bump()
        return added

    def evict(self, entity_id: str) -> None:
        had_track = self._tracks.pop(entity_id, None) is not None
        self._load_state.pop(entity_id, None)
        if self._in_flight.get(entity_id):
            # Any fetch still in flight for this entity is now stale.
            self._next_generation(entity_id)
        else:
            self._generations.pop(entity_id, None)
        if had_track:
            self._bump()

    def clear(self) -> None:
        """Deselect everything and drop every loaded track."""
        self.set_selection(())

    def _fail(self, entity_id: str, gen: int, ex: Exception) -> None:
        if self._generations.get(entity_id) == gen:
            self._load_state[entity_id] = "failed"
            self._bump()
        logger.warning("Failed to load track for %s: %s", entity_id, ex)

    def _finish(self, entity_id: str) -> None:
        left = self._in_flight.get(entity_id, 0) - 1
        if left > 0:
            self._in_flight[entity_id] = left
            return
        self._in_flight.pop(entity_id, None)
        # Evicted while the fetch was running: nothing refers to the generation anymore.
        if entity_id not in self._load_state:
            self._generations.pop(entity_id, None)

    async def load_track(self, entity_id: str, time_range: TimeRange) -> EntityTrack | None:
        gen = self._next_generation(entity_id)
        self._load_state[entity_id] = "pending"
        self._in_flight[entity_id] = self._in_flight.get(entity_id, 0) + 1

        try:
            try:
                raw = list(await self._fetcher.fetch_entity_positions(entity_id, time_range.start, time_range.end))
            except Exception as ex:
                self._fail(entity_id, gen, ex)
                return None

            if self._generations.get(entity_id) != gen:
                logger.debug("Discarding superseded load for %s (generation %d)", entity_id, gen)
                return None

            try:
                track = EntityTrack.build(entity_id, downsample(raw, self._max_points), time_range)
            except Exception as ex:
                self._fail(entity_id, gen, ex)
                return None
        finally:
            self._finish(entity_id)

        self._tracks[entity_id] = track
        self._load_state[entity_id] = "loaded"
        self._bump()
        logger.info("Loaded track for %s: %d raw samples, %d kept", entity_id, len(raw), len(track))
        return track

    async def load_tracks(self, entity_ids: Iterable[str], time_range: TimeRange) -> dict[str, EntityTrack | None]:
        ids = list(dict.fromkeys(entity_ids))
        results = await asyncio.gather(*(self.load_track(eid, time_range) for eid in ids))
        return dict(zip(ids, results))

    def get_track(self, entity_id: str) -> EntityTrack | None:
        return self._tracks.get(entity_id)

    def selected_tracks(self) -> list[EntityTrack]:
        out: list[EntityTrack] = []
        for eid in self._selection:
            track = self._tracks.get(eid)
            if track is not None:
                out.append(track)
        return out

    def load_state(self, entity_id: str) -> LoadState | None:
        return self._load_state.get(entity_id)

    def is_loaded(self, entity_id: str) -> bool:
        return self._load_state.get(entity_id) == "loaded"

    def path_color(self, entity_id: str) -> str | None:
        try:
            idx = self._selection.index(entity_id)
        except ValueError:
            return None
        return PATH_PALETTE[idx % len(PATH_PALETTE)]
