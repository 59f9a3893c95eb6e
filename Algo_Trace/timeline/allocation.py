"""Keyframe time allocation for process bindings.

Existing keyframe times are treated as pacing hints. A track that already
holds one time per step keeps those times; a track with at least two times
keeps its first and last time as anchors; anything else is spread evenly
over the whole timeline.
"""

from __future__ import annotations

import math
from typing import Iterable, List, Sequence

import numpy as np


def clamp(value: float, low: float, high: float) -> float:
    """Return ``value`` limited to ``[low, high]``."""

    return max(low, min(high, value))


def coerce_times(raw: Iterable[object]) -> List[float]:
    """Return the finite float times in ``raw`` sorted ascending.

    Entries that cannot be parsed as numbers, ``NaN`` and infinities are
    dropped so malformed tracks degrade to a coarser allocation.
    """

    times: List[float] = []
    for value in raw:
        if isinstance(value, bool):
            continue
        try:
            candidate = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            continue
        if math.isfinite(candidate):
            times.append(candidate)
    times.sort()
    return times


def uniform_times(count: int, start: float, end: float) -> List[float]:
    """Return ``count`` evenly spaced times from ``start`` to ``end``."""

    if count <= 1:
        return [float(start)]
    return [float(t) for t in np.linspace(start, end, count)]


def resolve_times(
    existing: Iterable[object], count: int, duration: float
) -> List[float]:
    """Allocate ``count`` step times inside ``[0, duration]``.

    Parameters
    ----------
    existing:
        Keyframe times already present on the track, in any order.
    count:
        Number of steps to place.
    duration:
        Timeline duration; negative values are treated as ``0``.
    """

    if count <= 0:
        return []
    duration = max(float(duration), 0.0)
    times = coerce_times(existing)

    if len(times) == count:
        return [clamp(t, 0.0, duration) for t in times]
    if count == 1:
        return [clamp(times[0], 0.0, duration) if times else 0.0]
    if len(times) >= 2:
        start = clamp(times[0], 0.0, duration)
        end = clamp(times[-1], 0.0, duration)
        return uniform_times(count, start, end)
    return uniform_times(count, 0.0, duration)


def find_matching_times(
    candidates: Sequence[Iterable[object]], count: int, duration: float
) -> List[float]:
    """Return reference times from the first suitable candidate.

    A candidate holding exactly ``count`` times wins outright; otherwise the
    first non-empty candidate is re-allocated with :func:`resolve_times`.
    Returns an empty list when every candidate is empty.
    """

    duration = max(float(duration), 0.0)
    coerced = [coerce_times(times) for times in candidates]
    for times in coerced:
        if len(times) == count:
            return [clamp(t, 0.0, duration) for t in times]
    for times in coerced:
        if times:
            return resolve_times(times, count, duration)
    return []


__all__ = [
    "clamp",
    "coerce_times",
    "find_matching_times",
    "resolve_times",
    "uniform_times",
]
