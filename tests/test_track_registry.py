from __future__ import annotations

import asyncio

import pytest

from pathplay.core.errors import InvalidArgumentError
from pathplay.core.samples import TimeRange
from pathplay.core.tracks import PATH_PALETTE, TrackRegistry

from conftest import FakeSource, samples_at

RANGE = TimeRange(start=0.0, end=10_000.0)


def test_load_track_downsamples_and_indexes(source: FakeSource) -> None:
    source.tracks["p1"] = samples_at(list(range(0, 101, 10)) + ["garbage"])
    reg = TrackRegistry(source, max_points=5)

    track = asyncio.run(reg.load_track("p1", RANGE))

    assert track is not None
    assert reg.get_track("p1") is track
    # 12 raw -> stride 3 -> 0, 30, 60, 90 + forced last ("garbage"), which indexing drops.
    assert track.index.instants == (0.0, 30.0, 60.0, 90.0)
    assert len(track.samples) == len(track.index.instants)
    assert track.time_range == RANGE
    assert reg.is_loaded("p1")
    assert source.calls == [("p1", 0.0, 10_000.0)]


def test_selection_is_set_replace_and_evicts(source: FakeSource) -> None:
    source.tracks = {eid: samples_at([1.0, 2.0]) for eid in ("a", "b", "c")}
    reg = TrackRegistry(source)

    assert reg.set_selection(["a", "b", "a", " "]) == ["a", "b"]
    assert reg.selection == ("a", "b")
    asyncio.run(reg.load_tracks(["a", "b"], RANGE))
    assert {t.entity_id for t in reg.selected_tracks()} == {"a", "b"}

    rev = reg.revision()
    assert reg.set_selection(["b", "c"]) == ["c"]
    assert reg.revision() > rev
    assert reg.get_track("a") is None
    assert reg.load_state("a") is None
    assert reg.get_track("b") is not None

    # Re-selecting an evicted entity reports it as new so it gets reloaded.
    assert reg.set_selection(["a", "b", "c"]) == ["a"]


def test_failed_load_keeps_previous_track(source: FakeSource) -> None:
    source.tracks["p1"] = samples_at([1.0, 2.0, 3.0])
    reg = TrackRegistry(source)

    first = asyncio.run(reg.load_track("p1", RANGE))
    assert first is not None

    source.failing.add("p1")
    again = asyncio.run(reg.load_track("p1", RANGE))

    assert again is None
    assert reg.get_track("p1") is first
    assert reg.load_state("p1") == "failed"
    assert not reg.is_loaded("p1")


def test_failed_first_load_leaves_no_track(source: FakeSource) -> None:
    source.failing.add("ghost")
    reg = TrackRegistry(source)
    reg.set_selection(["ghost"])

    assert asyncio.run(reg.load_track("ghost", RANGE)) is None
    assert reg.get_track("ghost") is None
    assert reg.selected_tracks() == []


def test_newest_request_wins_regardless_of_completion_order(source: FakeSource) -> None:
    reg = TrackRegistry(source)

    async def scenario() -> None:
        gate = asyncio.Event()
        source.gates["p1"] = gate
        source.tracks["p1"] = samples_at([1.0, 2.0])
        slow = asyncio.create_task(reg.load_track("p1", RANGE))
        await asyncio.sleep(0)

        # Second request completes first with different data.
        del source.gates["p1"]
        source.tracks["p1"] = samples_at([100.0, 200.0, 300.0])
        newest = await reg.load_track("p1", RANGE)
        assert newest is not None

        # Now let the stale request finish with the old data.
        source.tracks["p1"] = samples_at([1.0, 2.0])
        gate.set()
        assert await slow is None

        track = reg.get_track("p1")
        assert track is newest
        assert track.index.instants == (100.0, 200.0, 300.0)

    asyncio.run(scenario())


def test_in_flight_load_for_deselected_entity_is_discarded(source: FakeSource) -> None:
    reg = TrackRegistry(source)

    async def scenario() -> None:
        gate = asyncio.Event()
        source.gates["p1"] = gate
        source.tracks["p1"] = samples_at([1.0, 2.0])
        reg.set_selection(["p1"])
        task = asyncio.create_task(reg.load_track("p1", RANGE))
        await asyncio.sleep(0)

        reg.set_selection([])
        gate.set()
        assert await task is None
        assert reg.get_track("p1") is None

    asyncio.run(scenario())


def test_concurrent_loads_do_not_block_each_other(source: FakeSource) -> None:
    reg = TrackRegistry(source)

    async def scenario() -> None:
        gate = asyncio.Event()
        source.gates["slow"] = gate
        source.tracks = {"slow": samples_at([5.0]), "fast": samples_at([1.0, 2.0])}
        reg.set_selection(["slow", "fast"])

        batch = asyncio.create_task(reg.load_tracks(["slow", "fast"], RANGE))
        for _ in range(5):
            await asyncio.sleep(0)

        # "fast" is visible while "slow" is still pending.
        assert reg.get_track("fast") is not None
        assert reg.get_track("slow") is None
        assert reg.load_state("slow") == "pending"

        gate.set()
        results = await batch
        assert set(results) == {"slow", "fast"}
        assert reg.get_track("slow") is not None

    asyncio.run(scenario())


def test_path_colors_follow_selection_order(source: FakeSource) -> None:
    reg = TrackRegistry(source)
    ids = [f"p{i}" for i in range(len(PATH_PALETTE) + 1)]
    reg.set_selection(ids)

    assert reg.path_color("p0") == PATH_PALETTE[0]
    assert reg.path_color("p1") == PATH_PALETTE[1]
    assert reg.path_color(ids[-1]) == PATH_PALETTE[0]
    assert reg.path_color("unknown") is None


def test_rejects_invalid_budget(source: FakeSource) -> None:
    with pytest.raises(InvalidArgumentError):
        TrackRegistry(source, max_points=0)


def test_clear_drops_selection_and_tracks(source: FakeSource) -> None:
    source.tracks["p1"] = samples_at([0, 10, 20])
    reg = TrackRegistry(source)
    reg.set_selection(["p1"])
    asyncio.run(reg.load_track("p1", RANGE))
    rev = reg.revision()

    reg.clear()

    assert reg.selection == ()
    assert reg.get_track("p1") is None
    assert reg.load_state("p1") is None
    assert reg.revision() > rev


class _Unindexable:
    """Record without a usable timestamp attribute."""

    @property
    def timestamp(self) -> float:
        raise RuntimeError("corrupt record")


def test_build_failure_marks_failed_and_keeps_previous_track(source: FakeSource) -> None:
    source.tracks["p1"] = samples_at([0.0, 10.0])
    reg = TrackRegistry(source)
    reg.set_selection(["p1"])
    good = asyncio.run(reg.load_track("p1", RANGE))
    assert good is not None

    source.tracks["p1"] = [_Unindexable()]  # type: ignore[list-item]
    rev = reg.revision()

    assert asyncio.run(reg.load_track("p1", RANGE)) is None
    assert reg.load_state("p1") == "failed"
    assert not reg.is_loaded("p1")
    assert reg.get_track("p1") is good
    assert reg.revision() > rev


def test_oversized_integer_timestamps_do_not_fail_the_load(source: FakeSource) -> None:
    source.tracks["p1"] = samples_at([0.0, 10**400, 20.0])
    reg = TrackRegistry(source)

    track = asyncio.run(reg.load_track("p1", RANGE))

    assert track is not None
    assert track.index.instants == (0.0, 20.0)
    assert reg.load_state("p1") == "loaded"


def test_fetcher_may_return_any_iterable(source: FakeSource) -> None:
    class IterSource(FakeSource):
        async def fetch_entity_positions(self, entity_id: str, start: float, end: float):  # type: ignore[override]
            return iter(samples_at([0.0, 10.0, 20.0]))

    reg = TrackRegistry(IterSource())

    track = asyncio.run(reg.load_track("p1", RANGE))

    assert track is not None
    assert len(track) == 3


def test_generation_bookkeeping_is_dropped_after_eviction(source: FakeSource) -> None:
    source.tracks["p1"] = samples_at([0.0, 10.0])
    source.tracks["p2"] = samples_at([5.0])
    reg = TrackRegistry(source)

    async def scenario() -> None:
        reg.set_selection(["p1", "p2"])
        await reg.load_tracks(["p1", "p2"], RANGE)
        reg.set_selection(["p2"])
        assert "p1" not in reg._generations

        # Evicted mid-fetch: the entry lives until the stale fetch completes.
        gate = asyncio.Event()
        source.gates["p2"] = gate
        task = asyncio.create_task(reg.load_track("p2", RANGE))
        await asyncio.sleep(0)
        reg.set_selection([])
        assert "p2" in reg._generations
        gate.set()
        assert await task is None
        assert reg._generations == {}

    asyncio.run(scenario())
