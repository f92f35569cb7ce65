from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Sequence
from typing import Any, Protocol

from .coordinator import Coordinator
from .live import LivePositionFeed
from .playback import PlaybackClock, PlaybackState
from .samples import Bounds, LivePosition, PositionSample, TimeRange, TrackedEntity, time_range_for_preset
from .settings import PlaybackSettings
from .timeline import EntityTrack
from .tracks import TrackRegistry

logger = logging.getLogger(__name__)


class FleetSource(Protocol):
    async def fetch_entity_positions(self, entity_id: str, start: float, end: float) -> Sequence[PositionSample]: ...

    async def fetch_entity_list(self) -> Sequence[TrackedEntity]: ...

    async def fetch_live_entity_positions(self) -> Sequence[LivePosition]: ...

    async def fetch_position_stats(self) -> dict[str, Any]: ...


class PlaybackView:
    """One player-history view: selection, tracks, playback clock and live feed.

    The view owns all mutable playback state. Every method must be called from
    the event loop thread that runs `start()`.
    """

    def __init__(self, source: FleetSource, settings: PlaybackSettings | None = None) -> None:
        self.settings = settings or PlaybackSettings()
        self._source = source
        self.registry = TrackRegistry(source, max_points=self.settings.max_points_per_track)
        self.coordinator = Coordinator(self.registry)
        self.clock = PlaybackClock(
            self.coordinator.bounds,
            speed_factor=self.settings.default_speed,
            tick_interval_ms=self.settings.tick_interval_ms,
        )
        self.live = LivePositionFeed(
            source.fetch_live_entity_positions,
            interval_s=self.settings.live_refresh_interval_s,
        )
        self._time_range_preset = self.settings.default_time_range
        self._time_range: TimeRange | None = None
        self._entities: list[TrackedEntity] = []
        self._pending: set[asyncio.Task[EntityTrack | None]] = set()

    @property
    def time_range_preset(self) -> str:
        return self._time_range_preset

    def current_time_range(self) -> TimeRange:
        if self._time_range is None:
            self._time_range = time_range_for_preset(self._time_range_preset)
        return self._time_range

    def _schedule_load(self, entity_id: str, time_range: TimeRange) -> asyncio.Task[EntityTrack | None]:
        task = asyncio.get_running_loop().create_task(self.registry.load_track(entity_id, time_range))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    def select(self, entity_ids: Iterable[str]) -> list[asyncio.Task[EntityTrack | None]]:
        """Replace the selection and start loading newly selected entities.

        Loads run concurrently and are not awaited; the returned tasks are only
        for callers that want to wait.
        """
        added = self.registry.set_selection(entity_ids)
        if not added:
            return []
        time_range = self.current_time_range()
        return [self._schedule_load(eid, time_range) for eid in added]

    def reload(self) -> list[asyncio.Task[EntityTrack | None]]:
        self._time_range = time_range_for_preset(self._time_range_preset)
        return [self._schedule_load(eid, self._time_range) for eid in self.registry.selection]

    def set_time_range(self, preset: str) -> list[asyncio.Task[EntityTrack | None]]:
        time_range = time_range_for_preset(preset)
        self._time_range_preset = str(preset).strip().lower()
        self._time_range = time_range
        return [self._schedule_load(eid, time_range) for eid in self.registry.selection]

    async def refresh_entities(self) -> list[TrackedEntity]:
        entities = list(await self._source.fetch_entity_list())
        entities.sort(key=lambda e: (-(e.last_seen_at or 0.0), e.entity_id))
        self._entities = entities
        logger.debug("Fetched %d tracked entities", len(entities))
        return list(entities)

    def entities(self) -> list[TrackedEntity]:
        return list(self._entities)

    async def position_stats(self) -> dict[str, Any]:
        return await self._source.fetch_position_stats()

    def get_bounds(self) -> Bounds | None:
        return self.coordinator.bounds()

    def get_playback_state(self) -> PlaybackState:
        return self.clock.state()

    def resolve_positions(self, entity_ids: Iterable[str] | None = None) -> dict[str, PositionSample | None]:
        return self.coordinator.resolve_positions(entity_ids, self.clock.state().cursor)

    def focus(self) -> PositionSample | None:
        """Last known position of the first selected entity that has a track.

        Renderers centre the map here after a load.
        """
        for track in self.registry.selected_tracks():
            if track.last is not None:
                return track.last
        return None

    def revision(self) -> int:
        return self.registry.revision()

    def play(self) -> PlaybackState:
        return self.clock.play()

    def pause(self) -> PlaybackState:
        return self.clock.pause()

    def seek(self, t: float) -> PlaybackState:
        return self.clock.seek(t)

    def set_speed(self, factor: float) -> PlaybackState:
        return self.clock.set_speed(factor)

    def start(self, *, live: bool = True) -> None:
        self.clock.start()
        if live:
            self.live.start()

    async def stop(self) -> None:
        await self.clock.stop()
        await self.live.stop()
        pending = list(self._pending)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
