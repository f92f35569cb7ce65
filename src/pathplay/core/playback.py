from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from .errors import InvalidArgumentError
from .samples import Bounds

logger = logging.getLogger(__name__)

DEFAULT_TICK_INTERVAL_MS = 200
DEFAULT_SPEED_FACTOR = 10.0


class PlaybackStatus(str, Enum):
    IDLE = "idle"
    PAUSED = "paused"
    PLAYING = "playing"


@dataclass(frozen=True)
class PlaybackState:
    """Read-only snapshot of the playback clock.

    `cursor is None` means no playback position has been chosen yet; renderers
    then show the latest known position of every entity.
    """

    cursor: float | None
    is_playing: bool
    speed_factor: float

    @property
    def status(self) -> PlaybackStatus:
        if self.cursor is None:
            return PlaybackStatus.IDLE
        if self.is_playing:
            return PlaybackStatus.PLAYING
        return PlaybackStatus.PAUSED


def validate_speed(factor: float) -> float:
    try:
        v = float(factor)
    except (TypeError, ValueError) as ex:
        raise InvalidArgumentError("speed factor must be a number") from ex
    if isinstance(factor, bool) or not math.isfinite(v) or v <= 0.0:
        raise InvalidArgumentError("speed factor must be a positive finite number")
    return v


class PlaybackClock:
    """Virtual time cursor that advances `speed_factor` seconds per tick.

    Notes:
    - The clock is bounded by whatever `bounds_provider` returns at call time, so
      selection changes are picked up without notifying the clock.
    - Ticks fire on a fixed wall-clock cadence (`tick_interval_ms`); the speed
      factor only scales how much virtual time each tick covers.
    - Playback stops at the end of the bounds; it never loops.
    """

    def __init__(
        self,
        bounds_provider: Callable[[], Bounds | None],
        *,
        speed_factor: float = DEFAULT_SPEED_FACTOR,
        tick_interval_ms: int = DEFAULT_TICK_INTERVAL_MS,
    ) -> None:
        if isinstance(tick_interval_ms, bool) or not math.isfinite(float(tick_interval_ms)) or tick_interval_ms <= 0:
            raise InvalidArgumentError("tick_interval_ms must be positive")
        self._bounds_provider = bounds_provider
        self._speed = validate_speed(speed_factor)
        self._tick_interval_ms = tick_interval_ms
        self._cursor: float | None = None
        self._playing = False
        self._task: asyncio.Task[None] | None = None

    @property
    def tick_interval_s(self) -> float:
        return float(self._tick_interval_ms) / 1000.0

    @property
    def status(self) -> PlaybackStatus:
        return self.state().status

    def state(self) -> PlaybackState:
        return PlaybackState(cursor=self._cursor, is_playing=self._playing, speed_factor=self._speed)

    def play(self) -> PlaybackState:
        bounds = self._bounds_provider()
        if bounds is None:
            return self.state()
        if self._cursor is None:
            self._cursor = bounds.start
        self._playing = True
        logger.debug("Playback started at %s", self._cursor)
        return self.state()

    def pause(self) -> PlaybackState:
        if self._playing:
            self._playing = False
            logger.debug("Playback paused at %s", self._cursor)
        return self.state()

    def seek(self, t: float) -> PlaybackState:
        v = float(t)
        if not math.isfinite(v):
            raise InvalidArgumentError("seek time must be finite")
        bounds = self._bounds_provider()
        if bounds is None:
            return self.state()
        self._cursor = bounds.clamp(v)
        return self.state()

    def set_speed(self, factor: float) -> PlaybackState:
        self._speed = validate_speed(factor)
        return self.state()

    def reset(self) -> PlaybackState:
        self._cursor = None
        self._playing = False
        return self.state()

    def tick(self) -> PlaybackState:
        if not self._playing:
            return self.state()

        bounds = self._bounds_provider()
        if bounds is None:
            # Everything was deselected mid-playback.
            return self.reset()

        current = bounds.start if self._cursor is None else bounds.clamp(self._cursor)
        advanced = current + self._speed
        if advanced >= bounds.end:
            self._cursor = bounds.end
            self._playing = False
            logger.debug("Playback reached end of bounds at %s", bounds.end)
        else:
            self._cursor = advanced
        return self.state()

    async def run(self) -> None:
        while True:
            await asyncio.sleep(self.tick_interval_s)
            if self._playing:
                self.tick()

    def start(self) -> asyncio.Task[None]:
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self.run())
        return self._task

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
