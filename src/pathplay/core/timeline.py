from __future__ import annotations

import logging
import time
from bisect import bisect_right
from collections.abc import Iterable
from dataclasses import dataclass, field

from .samples import Bounds, PositionSample, TimeRange, parse_instant

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TemporalIndex:
    """Read-only lookup structure over one track.

    `instants[i]` is the parsed epoch time of `samples[i]`; both tuples always
    have the same length and `instants` is non-decreasing.
    """

    samples: tuple[PositionSample, ...] = ()
    instants: tuple[float, ...] = ()

    def __len__(self) -> int:
        return len(self.instants)

    def query_at_or_before(self, t: float) -> int | None:
        """Index of the latest sample with instant <= t, or None."""
        idx = bisect_right(self.instants, float(t)) - 1
        if idx >= 0:
            return idx
        return None

    def sample_at_or_before(self, t: float) -> PositionSample | None:
        idx = self.query_at_or_before(t)
        if idx is None:
            return None
        return self.samples[idx]

    def span(self) -> Bounds | None:
        if not self.instants:
            return None
        return Bounds(start=self.instants[0], end=self.instants[-1])


def build_index(samples: Iterable[PositionSample]) -> TemporalIndex:
    kept: list[tuple[float, PositionSample]] = []
    dropped = 0
    for s in samples:
        t = parse_instant(s.timestamp)
        if t is None:
            dropped += 1
            continue
        kept.append((t, s))

    if dropped:
        logger.debug("Dropped %d samples with unparseable timestamps", dropped)

    if any(kept[i][0] > kept[i + 1][0] for i in range(len(kept) - 1)):
        logger.warning("Samples arrived out of timestamp order; sorting %d samples", len(kept))
        # Stable: samples sharing a timestamp keep their arrival order.
        kept.sort(key=lambda item: item[0])

    return TemporalIndex(
        samples=tuple(s for _, s in kept),
        instants=tuple(t for t, _ in kept),
    )


def query_at_or_before(index: TemporalIndex, t: float) -> int | None:
    return index.query_at_or_before(t)


@dataclass(frozen=True)
class EntityTrack:
    """Indexed position history of one entity over one loaded time range.

    Tracks are replaced wholesale when a new range is loaded; they are never
    mutated.
    """

    entity_id: str
    index: TemporalIndex
    time_range: TimeRange | None = None
    loaded_at: float = field(default_factory=time.time)

    @classmethod
    def build(
        cls,
        entity_id: str,
        samples: Iterable[PositionSample],
        time_range: TimeRange | None = None,
    ) -> EntityTrack:
        return cls(entity_id=str(entity_id), index=build_index(samples), time_range=time_range)

    @property
    def samples(self) -> tuple[PositionSample, ...]:
        return self.index.samples

    @property
    def first(self) -> PositionSample | None:
        return self.index.samples[0] if self.index.samples else None

    @property
    def last(self) -> PositionSample | None:
        return self.index.samples[-1] if self.index.samples else None

    def span(self) -> Bounds | None:
        return self.index.span()

    def __len__(self) -> int:
        return len(self.index)
