from __future__ import annotations

import math
from collections.abc import Sequence
from typing import TypeVar

from .errors import InvalidArgumentError


T = TypeVar("T")


def downsample(samples: Sequence[T], max_points: int) -> list[T]:
    """Reduce `samples` to roughly `max_points` items by striding.

    Keeps every `ceil(n / max_points)`-th item starting at index 0 and always
    keeps the true last item, so the output holds at most `max_points + 1`
    items. Order is preserved and no item is created; short inputs come back
    unchanged.
    """
    if isinstance(max_points, bool) or int(max_points) != max_points or max_points <= 0:
        raise InvalidArgumentError("max_points must be a positive integer")

    n = len(samples)
    if n <= max_points:
        return list(samples)

    stride = math.ceil(n / int(max_points))
    out = list(samples[::stride])

    last = samples[n - 1]
    if out[-1] is not last:
        out.append(last)
    return out
