from __future__ import annotations

from typing import Iterable

from chunkscribe.contracts.artifacts import SplitPlan
from chunkscribe.contracts.config import DEFAULT_MAX_CHUNK_S, DEFAULT_MIN_SPLIT_GAP_S
from chunkscribe.contracts.errors import InputValidationError


def plan_splits(
    silence_points: Iterable[float],
    *,
    max_chunk_s: float = DEFAULT_MAX_CHUNK_S,
    min_gap_s: float = DEFAULT_MIN_SPLIT_GAP_S,
) -> SplitPlan:
    """
    Choose cut times from silence-end timestamps.

    Pass 1 walks the points and accepts the first one at least ``max_chunk_s``
    past the previous cut (starting from 0), bounding chunk duration wherever
    a silence allows it. Pass 2 walks them again with the cursor left where
    pass 1 stopped and accepts any unused point at least ``min_gap_s`` past the
    previous cut. Both passes are stable: the first qualifying point wins.
    """
    if max_chunk_s <= 0:
        raise InputValidationError("max_chunk_s must be > 0")
    if min_gap_s <= 0:
        raise InputValidationError("min_gap_s must be > 0")

    points = [float(p) for p in silence_points]
    accepted: list[float] = []
    last_split = 0.0

    for point in points:
        if point - last_split >= max_chunk_s:
            accepted.append(point)
            last_split = point

    for point in points:
        if point not in accepted and point - last_split >= min_gap_s:
            accepted.append(point)
            last_split = point

    return SplitPlan(times=tuple(sorted(set(accepted))))


__all__ = ["plan_splits"]
