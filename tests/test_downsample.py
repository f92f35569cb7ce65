from __future__ import annotations

import pytest

from pathplay.core.downsample import downsample
from pathplay.core.errors import InvalidArgumentError

from conftest import samples_at


def test_short_input_is_returned_unchanged() -> None:
    s = samples_at([0, 10, 20])
    out = downsample(s, 3)
    assert out == s
    assert all(a is b for a, b in zip(out, s))
    assert downsample([], 5) == []


def test_stride_and_forced_last_sample() -> None:
    s = samples_at(list(range(0, 101, 10)))
    out = downsample(s, 5)

    # ceil(11 / 5) == 3 -> indices 0, 3, 6, 9 plus the forced last index 10.
    assert [o.timestamp for o in out] == [0, 30, 60, 90, 100]
    assert out[-1] is s[-1]


def test_last_sample_not_duplicated_when_stride_lands_on_it() -> None:
    s = samples_at(list(range(10)))
    out = downsample(s, 5)
    # stride 2 -> 0, 2, 4, 6, 8 and then 9 appended
    assert [o.timestamp for o in out] == [0, 2, 4, 6, 8, 9]

    s2 = samples_at(list(range(7)))
    out2 = downsample(s2, 3)
    # stride 3 -> 0, 3, 6; 6 is already the last sample
    assert [o.timestamp for o in out2] == [0, 3, 6]


def test_bound_and_tail_hold_for_many_sizes() -> None:
    for n in range(1, 120):
        s = samples_at(list(range(n)))
        for max_points in (1, 2, 3, 7, 16, 50):
            out = downsample(s, max_points)
            assert len(out) <= max_points + 1
            assert out[-1] is s[-1]
            ts = [o.timestamp for o in out]
            assert ts == sorted(ts)
            assert all(any(o is orig for orig in s) for o in out)


def test_downsample_is_stable_once_within_budget() -> None:
    s = samples_at(list(range(0, 101, 10)))
    once = downsample(s, 5)
    assert downsample(once, 5) == once


def test_large_track_is_bounded_by_default_budget() -> None:
    s = samples_at(list(range(50_000)))
    out = downsample(s, 8000)
    assert len(out) <= 8001
    assert out[0] is s[0]
    assert out[-1] is s[-1]


@pytest.mark.parametrize("bad", [0, -1, 2.5, True])
def test_rejects_invalid_budget(bad: object) -> None:
    with pytest.raises(InvalidArgumentError):
        downsample(samples_at([0, 1]), bad)  # type: ignore[arg-type]
