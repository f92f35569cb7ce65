from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Any

import pytest

from pathplay.core.errors import FetchError
from pathplay.core.samples import LivePosition, PositionSample, TrackedEntity


def samples_at(times: Sequence[Any], *, x0: float = 0.0) -> list[PositionSample]:
    return [PositionSample(timestamp=t, x=x0 + float(i), y=0.0, z=float(i)) for i, t in enumerate(times)]


class FakeSource:
    """In-memory stand-in for the fleet API."""

    def __init__(self, tracks: dict[str, list[PositionSample]] | None = None) -> None:
        self.tracks: dict[str, list[PositionSample]] = dict(tracks or {})
        self.failing: set[str] = set()
        self.gates: dict[str, asyncio.Event] = {}
        self.calls: list[tuple[str, float, float]] = []
        self.entities: list[TrackedEntity] = []
        self.live: list[LivePosition] = []
        self.live_failing = False

    async def fetch_entity_positions(self, entity_id: str, start: float, end: float) -> list[PositionSample]:
        self.calls.append((entity_id, start, end))
        gate = self.gates.get(entity_id)
        if gate is not None:
            await gate.wait()
        if entity_id in self.failing:
            raise FetchError(f"Failed to get positions for {entity_id}: 500 boom", status_code=500)
        return list(self.tracks.get(entity_id, []))

    async def fetch_entity_list(self) -> list[TrackedEntity]:
        return list(self.entities)

    async def fetch_live_entity_positions(self) -> list[LivePosition]:
        if self.live_failing:
            raise FetchError("Failed to get online players: 503 down", status_code=503)
        return list(self.live)

    async def fetch_position_stats(self) -> dict[str, Any]:
        return {"totalPositions": sum(len(v) for v in self.tracks.values()), "uniquePlayers": len(self.tracks)}


@pytest.fixture
def source() -> FakeSource:
    return FakeSource()
