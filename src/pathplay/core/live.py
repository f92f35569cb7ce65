from __future__ import annotations

import asyncio
import logging
import math
import time
from collections.abc import Awaitable, Callable, Sequence

from .errors import InvalidArgumentError
from .samples import LivePosition

logger = logging.getLogger(__name__)

LiveFetch = Callable[[], Awaitable[Sequence[LivePosition]]]


class LivePositionFeed:
    """Latest known positions polled from the live feed.

    This is layered on top of historical playback and never touches the
    playback clock or the track registry.
    """

    def __init__(self, fetch: LiveFetch, *, interval_s: float = 5.0) -> None:
        if not math.isfinite(float(interval_s)) or interval_s <= 0:
            raise InvalidArgumentError("interval_s must be positive")
        self._fetch = fetch
        self._interval_s = float(interval_s)
        self._latest: dict[str, LivePosition] = {}
        self._updated_at: float | None = None
        self._task: asyncio.Task[None] | None = None
        self.enabled = True

    @property
    def updated_at(self) -> float | None:
        return self._updated_at

    def latest(self) -> dict[str, LivePosition]:
        return dict(self._latest)

    async def poll_once(self) -> bool:
        try:
            positions = await self._fetch()
        except Exception as ex:
            # Keep the previous snapshot on failure.
            logger.warning("Live position poll failed: %s", ex)
            return False
        self._latest = {p.entity_id: p for p in positions}
        self._updated_at = time.time()
        return True

    async def run(self) -> None:
        while True:
            if self.enabled:
                await self.poll_once()
            await asyncio.sleep(self._interval_s)

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
